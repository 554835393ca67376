"""
Server-side session records keyed by provider subject.

Records are dropped on logout or once they outlive the session TTL, so a
still-valid cookie never resurrects a session the server has forgotten.
"""
import threading
import time
from datetime import datetime, timezone
from typing import Callable, Protocol

from authrelay.logging_config import get_logger
from authrelay.models.session import ProviderIdentity, SessionRecord, SessionSummary, TokenSet

logger = get_logger(component="session_store")


class SessionStore(Protocol):
    """Operations the login flow needs from a session store."""

    def upsert(self, identity: ProviderIdentity, tokens: TokenSet) -> SessionRecord: ...

    def get(self, user_id: str) -> SessionRecord | None: ...

    def remove(self, user_id: str) -> bool: ...

    def list(self) -> list[SessionSummary]: ...

    def purge_expired(self) -> int: ...

    def __len__(self) -> int: ...


class InMemorySessionStore:
    """Process-local session store guarded by a single lock."""

    def __init__(self, ttl_seconds: int = 60 * 60 * 24 * 7, clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._records: dict[str, SessionRecord] = {}
        self._lock = threading.Lock()

    def upsert(self, identity: ProviderIdentity, tokens: TokenSet) -> SessionRecord:
        """
        Create or refresh the session for a provider identity.

        Args:
            identity: Profile returned by the provider
            tokens: Tokens from the code exchange

        Returns:
            The stored record. ``created_at`` survives repeated logins;
            token and profile fields reflect this call.
        """
        with self._lock:
            now = self._clock()
            timestamp = datetime.fromtimestamp(now, tz=timezone.utc)
            existing = self._live_locked(identity.sub, now)

            record = SessionRecord(
                user_id=identity.sub,
                email=identity.email,
                name=identity.name,
                picture=identity.picture,
                created_at=existing.created_at if existing else timestamp,
                updated_at=timestamp,
                access_token=tokens.access_token,
                refresh_token=tokens.refresh_token,
                token_expires_in=tokens.expires_in,
                expires_at=now + self.ttl_seconds,
            )
            self._records[identity.sub] = record

        logger.info("session_upserted", user_id=identity.sub, new=existing is None)
        return record

    def get(self, user_id: str) -> SessionRecord | None:
        with self._lock:
            return self._live_locked(user_id, self._clock())

    def remove(self, user_id: str) -> bool:
        with self._lock:
            removed = self._records.pop(user_id, None) is not None
        if removed:
            logger.info("session_removed", user_id=user_id)
        return removed

    def list(self) -> list[SessionSummary]:
        """Token-free summaries of every live session, oldest first."""
        with self._lock:
            now = self._clock()
            live = [record for record in self._records.values() if record.expires_at > now]
        return [record.summary() for record in sorted(live, key=lambda r: r.created_at)]

    def purge_expired(self) -> int:
        with self._lock:
            now = self._clock()
            expired = [user_id for user_id, record in self._records.items() if record.expires_at <= now]
            for user_id in expired:
                del self._records[user_id]
        if expired:
            logger.debug("sessions_purged", removed=len(expired))
        return len(expired)

    def _live_locked(self, user_id: str, now: float) -> SessionRecord | None:
        record = self._records.get(user_id)
        if record is not None and record.expires_at <= now:
            del self._records[user_id]
            return None
        return record

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
