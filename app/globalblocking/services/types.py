from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from django.http import HttpRequest

    from globalblocking.models import BlockRecord


class LookupFlags(enum.IntFlag):
    """Modifiers restricting which blocks a lookup may return."""

    NONE = 0
    EXCLUDE_ADDRESS_BLOCKS = 1
    EXCLUDE_SOFT_ADDRESS_BLOCKS = 2
    SKIP_LOCAL_OVERRIDE_CHECK = 4


class ReadConsistency(enum.Enum):
    REPLICA = "replica"
    PRIMARY = "primary"


class AttemptSource(str, enum.Enum):
    ACCOUNT = "account"
    ADDRESS = "address"
    FORWARDED = "forwarded"


@dataclass(frozen=True)
class TargetAttempt:
    """One target probed during a lookup."""

    source: AttemptSource
    central_id: int | None = None
    address: str | None = None
    flags: LookupFlags = LookupFlags.NONE


@dataclass(frozen=True)
class ErrorPayload:
    message_key: str
    params: tuple[str, ...]


@dataclass(frozen=True)
class Resolution:
    """Outcome of a lookup: the effective block, if any, and its error payload."""

    block: BlockRecord | None = None
    error: ErrorPayload | None = None
    attempt: TargetAttempt | None = None

    @property
    def is_blocked(self) -> bool:
        return self.block is not None

    @property
    def block_id(self) -> int:
        return self.block.pk if self.block is not None else 0


NO_BLOCK = Resolution()


@dataclass(frozen=True)
class RequestMetadata:
    """Addresses a request arrived from."""

    direct_address: str | None = None
    forwarded_chain: tuple[str, ...] = ()

    @classmethod
    def from_request(cls, request: HttpRequest, trust_forwarded: bool = False) -> RequestMetadata:
        """Read the connecting address and, when trusted, the X-Forwarded-For chain."""
        direct = (request.META.get("REMOTE_ADDR") or "").strip() or None
        chain: tuple[str, ...] = ()
        if trust_forwarded:
            header = request.META.get("HTTP_X_FORWARDED_FOR") or ""
            chain = tuple(part.strip() for part in header.split(",") if part.strip())
        return cls(direct_address=direct, forwarded_chain=chain)
