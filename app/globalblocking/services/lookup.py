"""Effective global block lookup for actors and raw targets."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import TYPE_CHECKING

from django.utils import timezone

from ..config import GlobalBlockingConfig
from .block_store import BlockStore, DatabaseBlockStore
from .conditions import ConditionBuilder
from .exemption import is_exempt
from .identity import IdentityResolver, build_identity_resolver
from .lookup_cache import CacheKey, LookupCache, make_key
from .messages import build_error_payload
from .precedence import PrecedenceResolver
from .range_codec import RangeCodec
from .types import (
    NO_BLOCK,
    AttemptSource,
    LookupFlags,
    ReadConsistency,
    RequestMetadata,
    Resolution,
    TargetAttempt,
)

if TYPE_CHECKING:
    from django.http import HttpRequest

logger = logging.getLogger(__name__)


class GlobalBlockLookup:
    """
    Finds the single block that takes effect for an actor or target.

    An instance holds a LookupCache and is meant to live for one request;
    the middleware creates one per request.
    """

    def __init__(
        self,
        config: GlobalBlockingConfig,
        *,
        store: BlockStore | None = None,
        identity_resolver: IdentityResolver | None = None,
        cache: LookupCache | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.config = config
        self.codec = RangeCodec(config)
        self.builder = ConditionBuilder(self.codec)
        self.store = store if store is not None else DatabaseBlockStore(config)
        self.identity_resolver = (
            identity_resolver if identity_resolver is not None else build_identity_resolver(config)
        )
        self.cache = cache if cache is not None else LookupCache()
        self.resolver = PrecedenceResolver(self.store, self.builder)
        self.clock = clock or timezone.now

    @classmethod
    def from_settings(cls, **kwargs) -> GlobalBlockLookup:
        return cls(GlobalBlockingConfig.from_settings(), **kwargs)

    def actor_central_id(self, user) -> int | None:
        """Central id of a logged-in user whose account exists on this wiki."""
        if user is None or not user.is_authenticated:
            return None
        central_id = self.identity_resolver.id_for(user.get_username())
        if central_id and self.identity_resolver.is_local_identity(central_id):
            return central_id
        return None

    def actor_flags(self, user, direct_address: str | None, flags: LookupFlags) -> LookupFlags:
        if user is not None and user.is_authenticated:
            # Soft blocks only apply to logged-out actors.
            flags |= LookupFlags.EXCLUDE_SOFT_ADDRESS_BLOCKS
        if is_exempt(user) or self.codec.in_allowed_ranges(direct_address):
            flags |= LookupFlags.EXCLUDE_ADDRESS_BLOCKS
        return flags

    def build_attempts(
        self,
        central_id: int | None,
        direct_address: str | None,
        forwarded_chain: Sequence[str] = (),
        flags: LookupFlags = LookupFlags.NONE,
    ) -> list[TargetAttempt]:
        """Targets to probe, in precedence order: account, direct address, forwarded chain."""
        attempts = []
        if central_id:
            attempts.append(
                TargetAttempt(AttemptSource.ACCOUNT, central_id=central_id, flags=flags)
            )
        if flags & LookupFlags.EXCLUDE_ADDRESS_BLOCKS:
            return attempts

        if direct_address:
            attempts.append(
                TargetAttempt(AttemptSource.ADDRESS, address=direct_address, flags=flags)
            )
        if self.config.block_xff:
            seen = {direct_address}
            for address in forwarded_chain:
                if address in seen:
                    continue
                if "/" in address:
                    # Forwarded entries are single addresses, never ranges.
                    logger.info("Skipping forwarded entry %r: not a single address", address)
                    continue
                seen.add(address)
                attempts.append(
                    TargetAttempt(AttemptSource.FORWARDED, address=address, flags=flags)
                )
        return attempts

    def get_block_for_actor(
        self,
        user,
        direct_address: str | None = None,
        metadata: RequestMetadata | None = None,
        flags: LookupFlags = LookupFlags.NONE,
        read_consistency: ReadConsistency = ReadConsistency.REPLICA,
    ) -> Resolution:
        """Effective block for a user connecting from ``direct_address``."""
        if direct_address is None and metadata is not None:
            direct_address = metadata.direct_address
        chain = metadata.forwarded_chain if metadata is not None and self.config.block_xff else ()

        central_id = self.actor_central_id(user)
        flags = self.actor_flags(user, direct_address, flags)
        if not central_id and flags & LookupFlags.EXCLUDE_ADDRESS_BLOCKS:
            return NO_BLOCK

        key = make_key("actor", central_id, direct_address, flags, tuple(chain))
        attempts = self.build_attempts(central_id, direct_address, chain, flags)
        return self._lookup(key, attempts, read_consistency)

    def get_block_for_target(
        self,
        target: str | None,
        flags: LookupFlags = LookupFlags.NONE,
        read_consistency: ReadConsistency = ReadConsistency.REPLICA,
        central_id: int | None = None,
    ) -> Resolution:
        """
        Effective block for an address, range or account name, in a single attempt.

        An address-like target that is malformed or too wide raises InvalidAddress.
        Any other target is treated as an account name; unknown accounts are not
        blocked. ``central_id`` adds an account to an address target, matching
        blocks on either.
        """
        target = (target or "").strip()
        if self.codec.looks_like_address(target):
            self.codec.range_bounds(target)
            attempt = TargetAttempt(
                AttemptSource.ADDRESS, central_id=central_id, address=target, flags=flags
            )
        elif target:
            central_id = self.identity_resolver.id_for(target)
            if not central_id:
                return NO_BLOCK
            attempt = TargetAttempt(AttemptSource.ACCOUNT, central_id=central_id, flags=flags)
        elif central_id:
            attempt = TargetAttempt(AttemptSource.ACCOUNT, central_id=central_id, flags=flags)
        else:
            return NO_BLOCK

        key = make_key("target", attempt.central_id, attempt.address, flags)
        return self._lookup(key, [attempt], read_consistency)

    def get_effective_block_id(
        self,
        target: str | None,
        read_consistency: ReadConsistency = ReadConsistency.REPLICA,
        flags: LookupFlags = LookupFlags.NONE,
    ) -> int:
        """Id of the block in effect for ``target``, or 0."""
        return self.get_block_for_target(target, flags, read_consistency).block_id

    def _lookup(
        self,
        key: CacheKey,
        attempts: Sequence[TargetAttempt],
        read_consistency: ReadConsistency,
    ) -> Resolution:
        # A primary read must observe writes made after any cached replica read.
        if read_consistency is ReadConsistency.REPLICA:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("Using cached global block lookup for %s", key)
                return cached

        match = self.resolver.resolve(attempts, self.clock(), read_consistency)
        if match is None:
            resolution = NO_BLOCK
        else:
            record, attempt = match
            resolution = Resolution(
                block=record,
                error=build_error_payload(record, attempt, self.identity_resolver, self.config),
                attempt=attempt,
            )
        self.cache.put(key, resolution)
        return resolution


def get_request_block(
    request: HttpRequest, flags: LookupFlags = LookupFlags.NONE
) -> Resolution:
    """Effective block for the user making ``request``."""
    lookup = getattr(request, "global_block_lookup", None)
    if lookup is None:
        lookup = GlobalBlockLookup.from_settings()
    metadata = getattr(request, "global_block_metadata", None)
    if metadata is None:
        metadata = RequestMetadata.from_request(request, trust_forwarded=lookup.config.block_xff)
    return lookup.get_block_for_actor(getattr(request, "user", None), metadata=metadata, flags=flags)
