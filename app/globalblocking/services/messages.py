"""Error payloads shown to blocked actors."""

from __future__ import annotations

from datetime import timezone as dt_timezone
from typing import TYPE_CHECKING

from .types import AttemptSource, ErrorPayload, TargetAttempt

if TYPE_CHECKING:
    from globalblocking.config import GlobalBlockingConfig
    from globalblocking.models import BlockRecord

    from .identity import IdentityResolver

ACCOUNT_BLOCKED = "globalblocking-blockedtext-user"
ADDRESS_BLOCKED = "globalblocking-blockedtext-ip"
RANGE_BLOCKED = "globalblocking-blockedtext-range"
FORWARDED_BLOCKED = "globalblocking-blockedtext-xff"
ANONYMOUS_ONLY_SUFFIX = "-anononly"

INFINITE_EXPIRY = "infinite"


def message_key_for(record: BlockRecord, attempt: TargetAttempt | None = None) -> str:
    if record.is_account_block:
        return ACCOUNT_BLOCKED

    if attempt is not None and attempt.source == AttemptSource.FORWARDED:
        key = FORWARDED_BLOCKED
    elif record.is_range_block:
        key = RANGE_BLOCKED
    else:
        key = ADDRESS_BLOCKED

    if record.anonymous_only:
        key += ANONYMOUS_ONLY_SUFFIX
    return key


def format_expiry(record: BlockRecord) -> str:
    if record.expires_at is None:
        return INFINITE_EXPIRY
    expiry = record.expires_at.astimezone(dt_timezone.utc)
    return f"{expiry:%H:%M}, {expiry.day} {expiry:%B %Y}"


def build_error_payload(
    record: BlockRecord,
    attempt: TargetAttempt | None,
    identity_resolver: IdentityResolver,
    config: GlobalBlockingConfig,
) -> ErrorPayload:
    """Message key and ordered parameters describing why an actor is blocked."""
    key = message_key_for(record, attempt)
    key = config.message_keys.get(key, key)
    return ErrorPayload(
        message_key=key,
        params=(
            record.reason,
            identity_resolver.blocker_display_name(record),
            record.target,
            format_expiry(record),
        ),
    )
