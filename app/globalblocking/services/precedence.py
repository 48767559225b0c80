"""Choosing the effective block among matching candidates."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import TYPE_CHECKING

from ..exceptions import InvalidAddress, StoreUnavailable
from .range_codec import range_size
from .types import LookupFlags, ReadConsistency, TargetAttempt

if TYPE_CHECKING:
    from globalblocking.models import BlockRecord

    from .block_store import BlockStore
    from .conditions import ConditionBuilder

logger = logging.getLogger(__name__)


def specificity(record: BlockRecord) -> int:
    """Number of addresses a block covers; account blocks count as the most specific."""
    if record.is_account_block:
        return 0
    return range_size(record.range_start, record.range_end)


def precedence_key(record: BlockRecord) -> tuple[bool, int, int]:
    # Lower sorts first: blocks disabling account creation, then the narrowest
    # range, then the most recently created.
    return (not record.disables_account_creation, specificity(record), -record.pk)


def select_block(candidates: Sequence[BlockRecord]) -> BlockRecord | None:
    if not candidates:
        return None
    return min(candidates, key=precedence_key)


class PrecedenceResolver:
    """Evaluates target attempts in order and returns the first effective block."""

    def __init__(self, store: BlockStore, builder: ConditionBuilder):
        self.store = store
        self.builder = builder

    def resolve(
        self,
        attempts: Iterable[TargetAttempt],
        now: datetime,
        read_consistency: ReadConsistency = ReadConsistency.REPLICA,
    ) -> tuple[BlockRecord, TargetAttempt] | None:
        for attempt in attempts:
            try:
                conditions = self.builder.build(
                    attempt.central_id, attempt.address, attempt.flags, now
                )
            except InvalidAddress as e:
                logger.info("Skipping %s attempt: %s", attempt.source.value, e)
                continue
            if conditions is None:
                continue

            candidates = self.store.fetch(conditions, read_consistency)
            if candidates and not attempt.flags & LookupFlags.SKIP_LOCAL_OVERRIDE_CHECK:
                candidates = self.without_local_overrides(candidates, now, read_consistency)

            try:
                chosen = select_block(candidates)
            except InvalidAddress as e:
                logger.exception("Stored block has a malformed range key")
                raise StoreUnavailable(f"Global block registry holds a malformed range: {e}") from e
            if chosen is not None:
                logger.debug(
                    "Block %s applies to %s attempt (%s)",
                    chosen.pk,
                    attempt.source.value,
                    attempt.address or attempt.central_id,
                )
                return chosen, attempt

        return None

    def without_local_overrides(
        self,
        candidates: Sequence[BlockRecord],
        now: datetime,
        read_consistency: ReadConsistency = ReadConsistency.REPLICA,
    ) -> list[BlockRecord]:
        overrides = self.store.fetch_overrides(
            [candidate.pk for candidate in candidates], read_consistency
        )
        overridden = {override.block_id for override in overrides if override.is_live(now)}
        if overridden:
            logger.debug("Blocks %s are disabled locally", sorted(overridden))
        return [candidate for candidate in candidates if candidate.pk not in overridden]
