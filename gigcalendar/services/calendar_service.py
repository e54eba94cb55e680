# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: calendar collections — business logic for gigs, members and
commitments.

Every command applies one mutation to one collection, persists it and then
publishes the *entire* affected collection to live subscribers. There is no
lock around read-modify-write sequences: concurrent updates of the same
record are last-write-wins. The published snapshot is read under the
broadcaster lock, so the last message always reflects the latest write.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from gigcalendar.core.errors import InvariantViolation, NotFoundError, ValidationError
from gigcalendar.core.logging import get_logger
from gigcalendar.core.security import hash_password, is_hashed
from gigcalendar.metrics import INVARIANT_REJECTIONS, MUTATIONS_TOTAL
from gigcalendar.models.domain import Commitment, Gig, Member
from gigcalendar.repositories.base import KEY_FIELDS, CollectionStore, record_key
from gigcalendar.services.broadcaster import Broadcaster

logger = get_logger(__name__)

MODELS = {"gigs": Gig, "members": Member, "commitments": Commitment}

SINGULAR = {"gigs": "Gig", "members": "Member", "commitments": "Commitment"}

SECRET_FIELDS: dict[str, tuple[str, ...]] = {"members": ("password",)}

PUBLIC_GIG_FIELDS: tuple[str, ...] = ("id", "title", "date", "venue", "address", "description")


def _describe(exc: PydanticValidationError) -> str:
    missing = [
        ".".join(str(p) for p in err["loc"])
        for err in exc.errors()
        if err["type"] == "missing"
    ]
    if missing:
        return f"Missing required field(s): {', '.join(missing)}"
    err = exc.errors()[0]
    field = ".".join(str(p) for p in err["loc"]) or "record"
    return f"Invalid value for {field}: {err['msg']}"


def _date_sort_key(gig: dict[str, Any]):
    value = gig.get("date") or ""
    try:
        moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return (1, value)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return (0, moment)


class CalendarService:
    """Validated, broadcasting access to the three calendar collections."""

    def __init__(self, store: CollectionStore, broadcaster: Broadcaster) -> None:
        self._store = store
        self._broadcaster = broadcaster

    # ── Queries ──

    def list_records(self, collection: str) -> list[dict[str, Any]]:
        """Full ordered collection; member secrets stripped."""
        self._check(collection)
        return [self._public(collection, r) for r in self._store.get_all(collection)]

    def get_record(self, collection: str, record_id: str) -> dict[str, Any]:
        self._check(collection)
        record = self._store.get(collection, record_id)
        if record is None:
            raise self._not_found(collection, record_id)
        return self._public(collection, record)

    def public_gigs(self) -> list[dict[str, Any]]:
        """Confirmed gigs, soonest first, without internal fields."""
        confirmed = [g for g in self._store.get_all("gigs") if g.get("status") == "confirmed"]
        confirmed.sort(key=_date_sort_key)
        return [{f: g.get(f) for f in PUBLIC_GIG_FIELDS} for g in confirmed]

    # ── Commands ──

    def create(self, collection: str, record: dict[str, Any]) -> dict[str, Any]:
        """Validate and append a record. Raises ValidationError."""
        self._check(collection)
        if collection == "commitments":
            commitment = self._validate(collection, record)
            return self.upsert_commitment(
                commitment["gigId"], commitment["userId"],
                commitment["status"], commitment.get("notes"),
            )

        data = dict(record)
        if not data.get("id"):
            data["id"] = uuid.uuid4().hex
        validated = self._validate(collection, data)
        existing = self._store.get_all(collection)
        if any(r.get("id") == validated["id"] for r in existing):
            raise ValidationError(
                f"{SINGULAR[collection]} with id '{validated['id']}' already exists",
                public_message=f"{SINGULAR[collection]} already exists",
            )
        if collection == "members":
            self._check_unique_email(existing, validated["email"], validated["id"])
            validated["password"] = self._hashed(validated["password"])

        self._store.insert(collection, validated)
        MUTATIONS_TOTAL.labels(collection=collection, operation="create").inc()
        logger.info("%s created: id=%s", SINGULAR[collection], validated["id"])
        self._broadcast(collection)
        return self._public(collection, validated)

    def update(self, collection: str, record_id: str, partial: dict[str, Any]) -> dict[str, Any]:
        """Merge ``partial`` into the record with ``record_id``.

        Raises NotFoundError, ValidationError, InvariantViolation.
        """
        self._check(collection)
        existing = self._store.get(collection, record_id)
        if existing is None:
            raise self._not_found(collection, record_id)

        changes = {k: v for k, v in partial.items() if k not in KEY_FIELDS[collection]}
        if collection == "members":
            if not changes.get("password"):
                changes.pop("password", None)
        merged = self._validate(collection, {**existing, **changes})

        if collection == "members":
            others = [
                r for r in self._store.get_all("members") if r.get("id") != record_id
            ]
            self._check_unique_email(others, merged["email"], record_id)
            if existing.get("role") == "admin" and merged["role"] != "admin":
                if not any(r.get("role") == "admin" for r in others):
                    INVARIANT_REJECTIONS.labels(collection=collection).inc()
                    raise InvariantViolation(
                        f"Refusing to demote last admin {record_id}",
                        public_message="Cannot remove the last admin",
                    )
            if "password" in changes:
                merged["password"] = self._hashed(merged["password"])

        stored = self._store.update(collection, record_id, merged)
        if stored is None:
            raise self._not_found(collection, record_id)
        MUTATIONS_TOTAL.labels(collection=collection, operation="update").inc()
        logger.info(
            "%s updated: id=%s, fields=%s",
            SINGULAR[collection], record_id, sorted(changes.keys()),
        )
        self._broadcast(collection)
        return self._public(collection, stored)

    def delete(self, collection: str, record_id: str) -> dict[str, Any]:
        """Remove a record. Deleting a gig also removes its commitments.

        Raises NotFoundError, InvariantViolation (last admin).
        """
        self._check(collection)
        existing = self._store.get(collection, record_id)
        if existing is None:
            raise self._not_found(collection, record_id)

        if collection == "members":
            remaining_admins = [
                r for r in self._store.get_all("members")
                if r.get("role") == "admin" and r.get("id") != record_id
            ]
            if not remaining_admins:
                INVARIANT_REJECTIONS.labels(collection=collection).inc()
                logger.warning("Refusing to delete last admin: id=%s", record_id)
                raise InvariantViolation(
                    f"Deleting member {record_id} would leave no admin",
                    public_message="Cannot delete the last admin",
                )

        removed = self._store.delete(collection, record_id)
        if removed is None:
            raise self._not_found(collection, record_id)
        MUTATIONS_TOTAL.labels(collection=collection, operation="delete").inc()
        logger.info("%s deleted: id=%s", SINGULAR[collection], record_id)
        self._broadcast(collection)

        if collection == "gigs":
            self._drop_commitments_for_gig(record_id)
        return self._public(collection, removed)

    def upsert_commitment(
        self,
        gig_id: str,
        user_id: str,
        status: str = "pending",
        notes: Optional[str] = None,
    ) -> dict[str, Any]:
        """Replace any commitment for (gig_id, user_id) with a new one."""
        record = self._validate(
            "commitments",
            {"gigId": gig_id, "userId": user_id, "status": status, "notes": notes},
        )
        key = record_key("commitments", record)
        self._store.delete("commitments", key)
        self._store.insert("commitments", record)
        MUTATIONS_TOTAL.labels(collection="commitments", operation="upsert").inc()
        logger.info(
            "Commitment recorded: gig=%s, user=%s, status=%s", gig_id, user_id, status
        )
        self._broadcast("commitments")
        return record

    def replace_commitments(self, records: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Swap the whole commitments collection.

        Duplicate (gigId, userId) pairs collapse to the last one submitted.
        """
        by_key: dict[str, dict[str, Any]] = {}
        for index, raw in enumerate(records):
            try:
                record = Commitment.model_validate(raw).to_record()
            except PydanticValidationError as exc:
                raise ValidationError(
                    f"Commitment #{index}: {_describe(exc)}",
                    public_message="Invalid commitments payload",
                ) from exc
            key = record_key("commitments", record)
            by_key.pop(key, None)
            by_key[key] = record
        stored = self._store.replace_all("commitments", list(by_key.values()))
        MUTATIONS_TOTAL.labels(collection="commitments", operation="replace").inc()
        logger.info("Commitments replaced: count=%d", len(stored))
        self._broadcast("commitments")
        return stored

    def import_gigs(self, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Create several gigs at once; one broadcast for the batch.

        Every row is validated before anything is written.
        """
        existing_ids = {g.get("id") for g in self._store.get_all("gigs")}
        validated: list[dict[str, Any]] = []
        for index, row in enumerate(rows):
            data = {k: v for k, v in row.items() if v not in (None, "")}
            data.setdefault("id", uuid.uuid4().hex)
            try:
                gig = Gig.model_validate(data).to_record()
            except PydanticValidationError as exc:
                raise ValidationError(
                    f"Row {index + 1}: {_describe(exc)}",
                    public_message=f"Invalid gig on row {index + 1}",
                ) from exc
            if gig["id"] in existing_ids:
                raise ValidationError(
                    f"Row {index + 1}: gig id '{gig['id']}' already exists",
                    public_message=f"Invalid gig on row {index + 1}",
                )
            existing_ids.add(gig["id"])
            validated.append(gig)

        for gig in validated:
            self._store.insert("gigs", gig)
        if validated:
            MUTATIONS_TOTAL.labels(collection="gigs", operation="import").inc()
            logger.info("Imported %d gigs", len(validated))
            self._broadcast("gigs")
        return validated

    # ── Seed ──

    def seed_admin(self, name: str, email: str, password: str) -> Optional[dict[str, Any]]:
        """Create a first admin when the members collection is empty."""
        if self._store.count("members") > 0:
            return None
        admin = self.create(
            "members",
            {"name": name, "email": email, "password": password, "role": "admin"},
        )
        logger.info("Seeded default admin: email=%s", admin["email"])
        return admin

    # ── Private ──

    @staticmethod
    def _check(collection: str) -> None:
        if collection not in MODELS:
            raise NotFoundError(
                f"Unknown collection '{collection}'", public_message="Unknown collection"
            )

    @staticmethod
    def _validate(collection: str, data: dict[str, Any]) -> dict[str, Any]:
        try:
            return MODELS[collection].model_validate(data).to_record()
        except PydanticValidationError as exc:
            raise ValidationError(
                f"{SINGULAR[collection]}: {_describe(exc)}",
                public_message=_describe(exc),
            ) from exc

    @staticmethod
    def _public(collection: str, record: dict[str, Any]) -> dict[str, Any]:
        hidden = SECRET_FIELDS.get(collection, ())
        return {k: v for k, v in record.items() if k not in hidden}

    @staticmethod
    def _hashed(password: str) -> str:
        return password if is_hashed(password) else hash_password(password)

    @staticmethod
    def _not_found(collection: str, record_id: str) -> NotFoundError:
        return NotFoundError(
            f"No {SINGULAR[collection].lower()} with id '{record_id}'",
            public_message=f"{SINGULAR[collection]} not found",
        )

    @staticmethod
    def _check_unique_email(records: list[dict[str, Any]], email: str, record_id: str) -> None:
        for r in records:
            if r.get("id") != record_id and (r.get("email") or "").lower() == email:
                raise ValidationError(
                    f"Email {email} already used by member {r.get('id')}",
                    public_message="Email already in use",
                )

    def _drop_commitments_for_gig(self, gig_id: str) -> None:
        commitments = self._store.get_all("commitments")
        kept = [c for c in commitments if c.get("gigId") != gig_id]
        if len(kept) == len(commitments):
            return
        self._store.replace_all("commitments", kept)
        MUTATIONS_TOTAL.labels(collection="commitments", operation="cascade").inc()
        logger.info(
            "Removed %d commitments of deleted gig %s", len(commitments) - len(kept), gig_id
        )
        self._broadcast("commitments")

    def _broadcast(self, collection: str) -> None:
        self._broadcaster.publish_latest(collection, lambda: self.list_records(collection))
