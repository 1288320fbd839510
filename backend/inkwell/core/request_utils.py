"""Request utility functions for handling common request operations."""

import ipaddress
import logging

from starlette.requests import Request

logger = logging.getLogger(__name__)


def _is_valid_ip(ip_str: str) -> bool:
    """Check if a string is a valid IP address."""
    try:
        ipaddress.ip_address(ip_str)
        return True
    except ValueError:
        return False


def get_client_ip(request: Request, trusted_proxies: set[str] | None = None) -> str:
    """Get the client IP address used to key per-client state.

    X-Forwarded-For / X-Real-IP are only honoured when the direct peer is a
    configured trusted proxy; otherwise they can be spoofed to dodge rate limits.
    """
    direct_ip = request.client.host if request.client else None

    if trusted_proxies and direct_ip and direct_ip in trusted_proxies:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            ip = forwarded.split(",")[0].strip()
            if _is_valid_ip(ip):
                return ip
            logger.warning(f"Invalid IP in X-Forwarded-For header: {ip}")

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            ip = real_ip.strip()
            if _is_valid_ip(ip):
                return ip
            logger.warning(f"Invalid IP in X-Real-IP header: {real_ip}")

    return direct_ip or "unknown"
