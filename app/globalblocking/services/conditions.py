"""Build registry query conditions for a lookup target."""

from __future__ import annotations

from datetime import datetime

from django.db.models import Q
from django.utils import timezone

from .range_codec import RangeCodec
from .types import LookupFlags


def unexpired_condition(now: datetime) -> Q:
    """Blocks that have not expired at ``now``. A null expiry never expires."""
    return Q(expires_at__isnull=True) | Q(expires_at__gt=now)


class ConditionBuilder:
    def __init__(self, codec: RangeCodec):
        self.codec = codec

    def build(
        self,
        target_central_id: int | None,
        address_or_range: str | None,
        flags: LookupFlags = LookupFlags.NONE,
        now: datetime | None = None,
    ) -> Q | None:
        """
        Return the conditions matching live blocks on an account and/or address.

        The address is validated before anything else, so a malformed address
        raises InvalidAddress even when an account is also given or address
        blocks are excluded. Returns None when there is nothing to query.
        """
        bounds = self.codec.range_bounds(address_or_range) if address_or_range else None

        target_conditions = []
        if target_central_id:
            target_conditions.append(Q(target_central_id=target_central_id))

        if bounds is not None and not flags & LookupFlags.EXCLUDE_ADDRESS_BLOCKS:
            address_condition = self.codec.containment_condition(*bounds)
            if flags & LookupFlags.EXCLUDE_SOFT_ADDRESS_BLOCKS:
                address_condition &= Q(anonymous_only=False)
            target_conditions.append(address_condition)

        if not target_conditions:
            return None

        target_condition = target_conditions[0]
        for condition in target_conditions[1:]:
            target_condition |= condition

        return unexpired_condition(now or timezone.now()) & target_condition
