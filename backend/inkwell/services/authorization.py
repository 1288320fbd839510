"""Authorization guards operating on an authenticated Identity."""

import logging
from collections.abc import Iterable

from inkwell.core.errors import AuthRequired, InsufficientPermissions, NotOwner
from inkwell.services.tokens import Identity

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"


def canonical_identity_id(value: object) -> int | None:
    """Normalize an identity id to int.

    Accepts ints and strings of digits; anything else (bools, floats, junk)
    yields None, which never matches an owner.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.isascii() and stripped.isdigit():
            return int(stripped)
    return None


def require_role(identity: Identity | None, allowed_roles: Iterable[str]) -> Identity:
    """Fail unless the identity exists and holds one of the allowed roles."""
    if identity is None:
        raise AuthRequired()
    allowed = set(allowed_roles)
    if identity.role not in allowed:
        logger.warning(
            f"Role check failed for user {identity.id}: has {identity.role}, needs {sorted(allowed)}"
        )
        raise InsufficientPermissions()
    return identity


def verify_ownership(identity: Identity | None, resource_owner_id: object) -> Identity:
    """Fail unless the identity owns the resource or is an admin."""
    if identity is None:
        raise AuthRequired()
    if identity.role == ADMIN_ROLE:
        return identity

    caller_id = canonical_identity_id(identity.id)
    owner_id = canonical_identity_id(resource_owner_id)
    if caller_id is None or owner_id is None or caller_id != owner_id:
        logger.warning(f"Ownership check failed: user {identity.id} on resource of {resource_owner_id}")
        raise NotOwner()
    return identity
