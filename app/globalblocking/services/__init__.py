from __future__ import annotations

from .lookup import GlobalBlockLookup, get_request_block
from .lookup_cache import LookupCache
from .range_codec import RangeCodec
from .types import (
    NO_BLOCK,
    ErrorPayload,
    LookupFlags,
    ReadConsistency,
    RequestMetadata,
    Resolution,
    TargetAttempt,
)

__all__ = [
    "GlobalBlockLookup",
    "get_request_block",
    "LookupCache",
    "RangeCodec",
    "NO_BLOCK",
    "ErrorPayload",
    "LookupFlags",
    "ReadConsistency",
    "RequestMetadata",
    "Resolution",
    "TargetAttempt",
]
