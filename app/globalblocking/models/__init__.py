from __future__ import annotations

from .block_record import BlockRecord
from .local_override import LocalOverride

__all__ = [
    "BlockRecord",
    "LocalOverride",
]
