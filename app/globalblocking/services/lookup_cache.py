from __future__ import annotations

from collections.abc import Hashable

from .types import LookupFlags, Resolution

CacheKey = tuple[Hashable, ...]


def make_key(
    scope: str,
    central_id: int | None,
    address: str | None,
    flags: LookupFlags,
    forwarded_chain: tuple[str, ...] = (),
) -> CacheKey:
    """Composite key of the lookup kind, identity, address, flags and forwarded chain."""
    return (scope, central_id or None, address or None, int(flags), tuple(forwarded_chain))


class LookupCache:
    """Per-request memo of lookup results.

    Entries live until ``clear()`` at the end of the request; one instance
    must never serve more than one request.
    """

    def __init__(self):
        self._entries: dict[CacheKey, Resolution] = {}

    def get(self, key: CacheKey) -> Resolution | None:
        return self._entries.get(key)

    def put(self, key: CacheKey, resolution: Resolution) -> None:
        self._entries[key] = resolution

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
