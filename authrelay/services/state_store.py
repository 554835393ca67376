"""
Anti-CSRF state storage for the authorization-code flow.

Each state value is single-use and only valid for a bounded window.
"""
import secrets
import threading
import time
from typing import Callable, Protocol

from authrelay.logging_config import get_logger
from authrelay.models.session import StateToken

logger = get_logger(component="state_store")

# 32 random bytes, 256 bits of entropy.
STATE_TOKEN_BYTES = 32


class StateStore(Protocol):
    """Operations the login flow needs from a state store."""

    def issue(self) -> StateToken: ...

    def validate_and_consume(self, value: str) -> bool: ...

    def purge_expired(self) -> int: ...

    def __len__(self) -> int: ...


class InMemoryStateStore:
    """
    Process-local state store.

    All operations hold one lock, so two callbacks racing on the same
    value see exactly one success.
    """

    def __init__(
        self,
        ttl_seconds: int = 600,
        max_entries: int = 10_000,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._tokens: dict[str, float] = {}
        self._lock = threading.Lock()

    def issue(self) -> StateToken:
        """
        Generate and record a new state value.

        Returns:
            The issued token; its value goes into the authorization URL.
        """
        value = secrets.token_urlsafe(STATE_TOKEN_BYTES)
        with self._lock:
            now = self._clock()
            self._purge_locked(now)
            # Oldest first; dicts keep insertion order.
            while len(self._tokens) >= self.max_entries:
                evicted = next(iter(self._tokens))
                del self._tokens[evicted]
                logger.warning("state_evicted", reason="capacity", max_entries=self.max_entries)
            self._tokens[value] = now
            pending = len(self._tokens)

        logger.debug("state_issued", pending=pending)
        return StateToken(value=value, issued_at=now)

    def validate_and_consume(self, value: str) -> bool:
        """
        Check a returned state value and remove it.

        Returns:
            True only if the value was issued, not yet consumed and is
            still inside the validity window.
        """
        if not isinstance(value, str) or not value:
            return False

        with self._lock:
            issued_at = self._tokens.pop(value, None)
            now = self._clock()

        if issued_at is None:
            logger.info("state_rejected", reason="unknown")
            return False
        if now - issued_at > self.ttl_seconds:
            logger.info("state_rejected", reason="expired", age_seconds=round(now - issued_at, 1))
            return False
        return True

    def purge_expired(self) -> int:
        """Drop every entry older than the validity window."""
        with self._lock:
            removed = self._purge_locked(self._clock())
        if removed:
            logger.debug("state_purged", removed=removed)
        return removed

    def _purge_locked(self, now: float) -> int:
        expired = [value for value, issued_at in self._tokens.items() if now - issued_at > self.ttl_seconds]
        for value in expired:
            del self._tokens[value]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)
