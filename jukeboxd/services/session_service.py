"""Session service - session records kept in the cache layer.

Token minting and verification live in the auth layer; this module only
stores the session payload under ``session:{id}`` and keeps a per-user index
(``user_sessions:{user_id}``) so every session of a user can be revoked.
"""

import json
import logging
import secrets
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from jukeboxd.core.cache import CacheBackend

logger = logging.getLogger(__name__)

SESSION_PREFIX = "session:"
USER_SESSIONS_PREFIX = "user_sessions:"


def session_key(session_id: str) -> str:
    return f"{SESSION_PREFIX}{session_id}"


def user_sessions_key(user_id: UUID | str) -> str:
    return f"{USER_SESSIONS_PREFIX}{user_id}"


class SessionStore:
    """Create, read and revoke sessions on top of a CacheBackend."""

    def __init__(self, cache: CacheBackend, ttl_seconds: int):
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    def _session_ids(self, user_id: UUID | str) -> list[str]:
        raw = self.cache.get(user_sessions_key(user_id))
        if not raw:
            return []
        try:
            ids = json.loads(raw)
        except ValueError:
            logger.warning(f"Discarding corrupt session index for user {user_id}")
            return []
        return [str(session_id) for session_id in ids]

    def create_session(self, user_id: UUID, data: dict[str, Any] | None = None) -> str:
        session_id = secrets.token_urlsafe(32)
        payload = {
            **(data or {}),
            "user_id": str(user_id),
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        self.cache.set(session_key(session_id), json.dumps(payload), self.ttl_seconds)

        # Drop ids whose session already expired so the index stays bounded.
        ids = [sid for sid in self._session_ids(user_id) if self.cache.exists(session_key(sid))]
        ids.append(session_id)
        self.cache.set(user_sessions_key(user_id), json.dumps(ids), self.ttl_seconds)
        return session_id

    def get_session(self, session_id: str) -> dict[str, Any] | None:
        raw = self.cache.get(session_key(session_id))
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            return None

    def delete_session(self, session_id: str) -> bool:
        session = self.get_session(session_id)
        deleted = self.cache.delete(session_key(session_id))
        if session and session.get("user_id"):
            user_id = session["user_id"]
            remaining = [sid for sid in self._session_ids(user_id) if sid != session_id]
            if remaining:
                self.cache.set(user_sessions_key(user_id), json.dumps(remaining), self.ttl_seconds)
            else:
                self.cache.delete(user_sessions_key(user_id))
        return deleted

    def invalidate_user_sessions(self, user_id: UUID) -> int:
        """Revoke every session of ``user_id``. Returns how many were removed."""
        removed = 0
        for session_id in self._session_ids(user_id):
            if self.cache.delete(session_key(session_id)):
                removed += 1
        self.cache.delete(user_sessions_key(user_id))
        logger.info(f"Revoked {removed} session(s) for user {user_id}")
        return removed
