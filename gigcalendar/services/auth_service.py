# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Service: member login — credential check against the members collection."""
from typing import Any, Dict

from gigcalendar.core.errors import AuthError
from gigcalendar.core.logging import get_logger
from gigcalendar.core.security import hash_password, is_hashed, verify_password
from gigcalendar.metrics import LOGIN_ATTEMPTS
from gigcalendar.repositories.base import CollectionStore

logger = get_logger(__name__)


class AuthService:
    def __init__(self, store: CollectionStore):
        self._store = store

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """Return the member (secret stripped) matching the credentials.

        Raises AuthError. A legacy plain-text secret is re-hashed on the first
        successful login.
        """
        email = (email or "").strip().lower()
        member = next(
            (m for m in self._store.get_all("members")
             if (m.get("email") or "").lower() == email),
            None,
        )
        if member is None or not verify_password(password or "", member.get("password", "")):
            LOGIN_ATTEMPTS.labels(outcome="rejected").inc()
            logger.info("Login rejected: email=%s", email)
            raise AuthError(f"Bad credentials for {email}")

        if not is_hashed(member["password"]):
            member["password"] = hash_password(password)
            self._store.update("members", member["id"], member)
            logger.info("Upgraded legacy credential: member=%s", member["id"])

        LOGIN_ATTEMPTS.labels(outcome="accepted").inc()
        logger.info("Login accepted: member=%s", member["id"])
        return {k: v for k, v in member.items() if k != "password"}
