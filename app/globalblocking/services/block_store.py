from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol

from django.db import DatabaseError
from django.db.models import Q

from ..exceptions import StoreUnavailable
from .types import ReadConsistency

if TYPE_CHECKING:
    from globalblocking.config import GlobalBlockingConfig
    from globalblocking.models import BlockRecord, LocalOverride

logger = logging.getLogger(__name__)


class BlockStore(Protocol):
    def fetch(
        self, conditions: Q, read_consistency: ReadConsistency = ReadConsistency.REPLICA
    ) -> list[BlockRecord]: ...

    def fetch_overrides(
        self,
        block_ids: Iterable[int],
        read_consistency: ReadConsistency = ReadConsistency.REPLICA,
    ) -> list[LocalOverride]: ...


class DatabaseBlockStore:
    """Reads blocks and local overrides through the Django ORM."""

    def __init__(self, config: GlobalBlockingConfig):
        self.config = config

    def database_for(self, read_consistency: ReadConsistency) -> str:
        return self.config.database_for(read_consistency is ReadConsistency.PRIMARY)

    def fetch(
        self, conditions: Q, read_consistency: ReadConsistency = ReadConsistency.REPLICA
    ) -> list[BlockRecord]:
        from globalblocking.models import BlockRecord

        alias = self.database_for(read_consistency)
        try:
            return list(BlockRecord.objects.using(alias).filter(conditions))
        except DatabaseError as e:
            logger.exception("Failed to query global blocks on database %s", alias)
            raise StoreUnavailable(f"Global block registry unavailable: {e}") from e

    def fetch_overrides(
        self,
        block_ids: Iterable[int],
        read_consistency: ReadConsistency = ReadConsistency.REPLICA,
    ) -> list[LocalOverride]:
        from globalblocking.models import LocalOverride

        block_ids = list(block_ids)
        if not block_ids:
            return []

        alias = self.database_for(read_consistency)
        try:
            return list(
                LocalOverride.objects.using(alias).filter(
                    block_id__in=block_ids, wiki=self.config.wiki_id
                )
            )
        except DatabaseError as e:
            logger.exception("Failed to query local overrides on database %s", alias)
            raise StoreUnavailable(f"Local override table unavailable: {e}") from e
