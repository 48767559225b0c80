"""Exemption from address-based global blocks."""

from __future__ import annotations

EXEMPT_PERMISSIONS = (
    "globalblocking.ipblock_exempt",
    "globalblocking.globalblock_exempt",
)


def is_exempt(user) -> bool:
    """Whether ``user`` may bypass address and range blocks.

    Exemption never covers a block placed on the user's own account.
    """
    if user is None:
        return False
    return any(user.has_perm(permission) for permission in EXEMPT_PERMISSIONS)
