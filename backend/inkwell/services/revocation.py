"""Process-local registry of revoked access tokens.

Entries live for a fixed window that exceeds any access token lifetime, so the
registry stays bounded. Nothing is persisted: a restart re-trusts tokens that
were revoked but not yet expired, which the short access token lifetime
limits. Multi-instance deployments would need a shared backing store.
"""

import asyncio
import logging
import threading
import time
from collections.abc import Callable

from inkwell.services.tokens import canonical_token

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 24 * 60 * 60


class RevocationRegistry:
    """Thread-safe set of revoked tokens with per-entry deadlines.

    Tokens are keyed by their canonical spelling, so a re-encoded signature
    still matches the revoked entry.

    Expired entries are dropped lazily on lookup and in bulk by purge_expired(),
    which the application runs periodically via revocation_sweep_loop().
    """

    def __init__(
        self,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.window_seconds = window_seconds
        self._clock = clock
        self._entries: dict[str, float] = {}  # token -> deadline
        self._lock = threading.Lock()

    def revoke(self, token: str) -> bool:
        """Revoke a token. Returns False if it was already revoked.

        Re-revoking keeps the original deadline.
        """
        token = canonical_token(token)
        now = self._clock()
        with self._lock:
            deadline = self._entries.get(token)
            if deadline is not None and now <= deadline:
                return False
            self._entries[token] = now + self.window_seconds
            return True

    def is_revoked(self, token: str) -> bool:
        token = canonical_token(token)
        with self._lock:
            deadline = self._entries.get(token)
            if deadline is None:
                return False
            if self._clock() > deadline:
                del self._entries[token]
                return False
            return True

    def purge_expired(self) -> int:
        """Remove expired entries. Returns count removed."""
        now = self._clock()
        with self._lock:
            expired = [token for token, deadline in self._entries.items() if now > deadline]
            for token in expired:
                del self._entries[token]
            return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


async def revocation_sweep_loop(registry: RevocationRegistry, interval_seconds: float) -> None:
    """Periodically drop expired revocation entries."""
    while True:
        try:
            await asyncio.sleep(interval_seconds)
            removed = registry.purge_expired()
            if removed > 0:
                logger.debug(f"Revocation sweep: removed {removed} expired entries")
        except asyncio.CancelledError:
            break
        except Exception as e:
            logger.warning(f"Revocation sweep error: {e}")
