# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Client: per-session cache of the three collections.

Mutations are applied to the local cache first and then sent over REST. A
failed request sets ``error`` and leaves the optimistic state in place; the
next broadcast (or ``load``) brings the cache back in line with the server.
Broadcasts replace a whole collection at once, so the last message received
always wins.
"""

import threading
import uuid
from typing import Any, Optional

import httpx

from gigcalendar.core.config import settings
from gigcalendar.core.logging import get_logger
from gigcalendar.repositories.base import COLLECTIONS

logger = get_logger(__name__)


class ClientStore:
    """Local view of gigs, members and commitments for one session."""

    def __init__(
        self,
        http_client: Optional[httpx.Client] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(
            base_url=base_url or settings.API_URL,
            timeout=timeout or settings.CLIENT_TIMEOUT,
        )
        self._lock = threading.Lock()
        self.gigs: list[dict[str, Any]] = []
        self.members: list[dict[str, Any]] = []
        self.commitments: list[dict[str, Any]] = []
        self.error: Optional[str] = None

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    # ── Initial load ──

    def load(self) -> bool:
        """Fetch every collection over REST. Returns False if any fetch failed."""
        responses = {
            collection: self._send(f"Failed to load {collection}", "GET", f"/api/{collection}")
            for collection in COLLECTIONS
        }
        with self._lock:
            for collection, resp in responses.items():
                if resp is None:
                    continue
                body = resp.json()
                # gigs arrive wrapped as {"gigs": [...]}
                setattr(self, collection, body[collection] if isinstance(body, dict) else body)
        failed = [c for c, resp in responses.items() if resp is None]
        self.error = f"Failed to load {failed[0]}" if failed else None
        return not failed

    # ── Gigs ──

    def add_gig(self, gig: dict[str, Any]) -> dict[str, Any]:
        record = {"status": "proposed", "assignedMembers": [], **gig}
        record.setdefault("id", uuid.uuid4().hex)
        with self._lock:
            self.gigs = [*self.gigs, record]
        self._send("Failed to add gig", "POST", "/api/gigs", json=record)
        return record

    def update_gig(self, gig_id: str, changes: dict[str, Any]) -> None:
        with self._lock:
            self.gigs = [
                {**g, **changes, "id": g["id"]} if g.get("id") == gig_id else g
                for g in self.gigs
            ]
        self._send("Failed to update gig", "PUT", f"/api/gigs/{gig_id}", json=changes)

    def delete_gig(self, gig_id: str) -> None:
        with self._lock:
            self.gigs = [g for g in self.gigs if g.get("id") != gig_id]
            self.commitments = [c for c in self.commitments if c.get("gigId") != gig_id]
        self._send("Failed to delete gig", "DELETE", f"/api/gigs/{gig_id}")

    # ── Members ──

    def add_member(self, member: dict[str, Any]) -> dict[str, Any]:
        record = {"role": "member", **member}
        record.setdefault("id", uuid.uuid4().hex)
        cached = {k: v for k, v in record.items() if k != "password"}
        with self._lock:
            self.members = [*self.members, cached]
        self._send("Failed to add member", "POST", "/api/members", json=record)
        return cached

    def update_member(self, member_id: str, changes: dict[str, Any]) -> None:
        visible = {k: v for k, v in changes.items() if k != "password"}
        with self._lock:
            self.members = [
                {**m, **visible, "id": m["id"]} if m.get("id") == member_id else m
                for m in self.members
            ]
        self._send("Failed to update member", "PUT", f"/api/members/{member_id}", json=changes)

    def remove_member(self, member_id: str) -> None:
        with self._lock:
            self.members = [m for m in self.members if m.get("id") != member_id]
        self._send("Failed to delete member", "DELETE", f"/api/members/{member_id}")

    # ── Commitments ──

    def update_commitment(
        self,
        gig_id: str,
        user_id: str,
        status: str,
        notes: Optional[str] = None,
    ) -> None:
        """Record a member's answer for a gig and push the whole collection."""
        commitment = {"gigId": gig_id, "userId": user_id, "status": status}
        if notes is not None:
            commitment["notes"] = notes
        with self._lock:
            updated = [
                c for c in self.commitments
                if c.get("gigId") != gig_id or c.get("userId") != user_id
            ]
            updated.append(commitment)
            self.commitments = updated
        resp = self._send(
            "Failed to update commitment", "POST", "/api/commitments", json=updated
        )
        if resp is not None:
            with self._lock:
                self.commitments = resp.json()

    # ── Live updates ──

    def apply_update(self, message: dict[str, Any]) -> bool:
        """Replace the named collection with the broadcast snapshot."""
        collection = message.get("type")
        data = message.get("data")
        if collection not in COLLECTIONS or not isinstance(data, list):
            logger.info("Ignoring live update: type=%s", collection)
            return False
        with self._lock:
            setattr(self, collection, data)
        return True

    def _send(self, failure: str, method: str, path: str, **kwargs) -> Optional[httpx.Response]:
        try:
            resp = self._http.request(method, path, **kwargs)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("%s: %s", failure, exc)
            self.error = failure
            return None
        self.error = None
        return resp
