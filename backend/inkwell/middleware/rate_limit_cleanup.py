"""Background rate limiter cleanup task."""

import asyncio
import logging
from collections.abc import Sequence

from inkwell.middleware.rate_limit import FixedWindowRateLimiter

logger = logging.getLogger(__name__)


async def rate_limit_cleanup_loop(
    limiters: Sequence[FixedWindowRateLimiter],
    interval_seconds: float = 3600,
) -> None:
    """Periodic cleanup of finished rate limit windows to prevent memory leaks."""
    while True:
        try:
            await asyncio.sleep(interval_seconds)
            removed = sum(limiter.cleanup_expired_windows() for limiter in limiters)
            if removed > 0:
                logger.debug(f"Rate limiter cleanup: removed {removed} expired windows")
        except asyncio.CancelledError:
            break
        except Exception as e:
            logger.warning(f"Rate limiter cleanup error: {e}")
