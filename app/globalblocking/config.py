"""Configuration snapshot for the global block lookup.

The ``GLOBAL_BLOCKING`` setting is read once into an immutable
``GlobalBlockingConfig`` which is then passed explicitly to every component.
Lookups never read ``django.conf.settings`` themselves.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from typing import Any

from django.conf import settings

from .exceptions import ConfigurationError

IDENTITY_RESOLVERS = ("local", "centralauth")

# Maximum prefix length per IP version.
MAX_PREFIX = {4: 32, 6: 128}
# Number of hex digits in an encoded key per IP version (excluding the v6 tag).
KEY_DIGITS = {4: 8, 6: 32}


def _family_value(values: Any, family: str, default: Any) -> Any:
    if not isinstance(values, dict):
        raise ConfigurationError(f"GLOBAL_BLOCKING expected a mapping for {family} limits, got {values!r}")
    return values.get(family, default)


@dataclass(frozen=True)
class GlobalBlockingConfig:
    """Read-only configuration consumed by the lookup.

    Attributes:
        cidr_limit_ipv4: Widest IPv4 prefix accepted in lookups and blocks.
        cidr_limit_ipv6: Widest IPv6 prefix accepted in lookups and blocks.
        bucket_length_ipv4: Hex digits of the range start used as the coarse
            LIKE bucket. ``None`` derives it from the CIDR limit.
        bucket_length_ipv6: Same for IPv6 (not counting the ``v6-`` tag).
        block_xff: Whether forwarded-address chains are checked.
        allowed_ranges: Addresses and ranges never subject to address blocks.
        wiki_id: Identifier of the local partition.
        replica_database: Database alias used for default reads.
        primary_database: Database alias used for read-your-writes lookups.
        identity_resolver: ``local`` or ``centralauth``.
        central_wiki: pywikibot site (code, family) holding global accounts.
        message_keys: Remapping of blocked-message keys.
    """

    cidr_limit_ipv4: int = 16
    cidr_limit_ipv6: int = 19
    bucket_length_ipv4: int | None = None
    bucket_length_ipv6: int | None = None
    block_xff: bool = False
    allowed_ranges: tuple[str, ...] = ()
    wiki_id: str = "localwiki"
    replica_database: str = "default"
    primary_database: str = "default"
    identity_resolver: str = "local"
    central_wiki: tuple[str, str] = ("meta", "meta")
    message_keys: dict[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        for version, limit in ((4, self.cidr_limit_ipv4), (6, self.cidr_limit_ipv6)):
            if isinstance(limit, bool) or not isinstance(limit, int):
                raise ConfigurationError(f"CIDR limit for IPv{version} must be an integer, got {limit!r}")
            if not 0 <= limit <= MAX_PREFIX[version]:
                raise ConfigurationError(
                    f"CIDR limit for IPv{version} must be between 0 and {MAX_PREFIX[version]}, got {limit}"
                )
        for version, length in ((4, self.bucket_length_ipv4), (6, self.bucket_length_ipv6)):
            if length is None:
                continue
            if isinstance(length, bool) or not isinstance(length, int):
                raise ConfigurationError(f"Bucket length for IPv{version} must be an integer, got {length!r}")
            if not 0 <= length <= KEY_DIGITS[version]:
                raise ConfigurationError(
                    f"Bucket length for IPv{version} must be between 0 and {KEY_DIGITS[version]}, got {length}"
                )
            # Every range at the CIDR limit must share its bucket with the addresses it covers.
            widest = self.cidr_limit(version) // 4
            if length > widest:
                raise ConfigurationError(
                    f"Bucket length for IPv{version} must not exceed {widest} "
                    f"(CIDR limit /{self.cidr_limit(version)}), got {length}"
                )
        for entry in self.allowed_ranges:
            try:
                ipaddress.ip_network(entry, strict=False)
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(f"Invalid entry in ALLOWED_RANGES: {entry!r}") from exc
        if self.identity_resolver not in IDENTITY_RESOLVERS:
            raise ConfigurationError(
                f"IDENTITY_RESOLVER must be one of {', '.join(IDENTITY_RESOLVERS)}, "
                f"got {self.identity_resolver!r}"
            )
        if not self.wiki_id:
            raise ConfigurationError("WIKI_ID must not be empty")

    def cidr_limit(self, version: int) -> int:
        return self.cidr_limit_ipv4 if version == 4 else self.cidr_limit_ipv6

    def bucket_length(self, version: int) -> int:
        """Number of leading hex digits used to bucket range queries."""
        configured = self.bucket_length_ipv4 if version == 4 else self.bucket_length_ipv6
        if configured is not None:
            return configured
        return self.cidr_limit(version) // 4

    def database_for(self, primary: bool) -> str:
        return self.primary_database if primary else self.replica_database

    @classmethod
    def from_settings(cls, overrides: dict | None = None) -> GlobalBlockingConfig:
        """Build a validated snapshot from ``settings.GLOBAL_BLOCKING``."""
        raw = dict(getattr(settings, "GLOBAL_BLOCKING", {}) or {})
        if overrides:
            raw.update(overrides)

        cidr_limit = raw.get("CIDR_LIMIT", {})
        bucket_length = raw.get("PREFIX_BUCKET_LENGTH", {})
        central_wiki = raw.get("CENTRAL_WIKI", {}) or {}
        allowed_ranges = raw.get("ALLOWED_RANGES", []) or []
        message_keys = raw.get("MESSAGE_KEYS", {}) or {}
        if isinstance(allowed_ranges, str) or not isinstance(allowed_ranges, (list, tuple)):
            raise ConfigurationError(f"ALLOWED_RANGES must be a list, got {allowed_ranges!r}")
        if not isinstance(message_keys, dict):
            raise ConfigurationError(f"MESSAGE_KEYS must be a mapping, got {message_keys!r}")

        return cls(
            cidr_limit_ipv4=_family_value(cidr_limit, "IPv4", 16),
            cidr_limit_ipv6=_family_value(cidr_limit, "IPv6", 19),
            bucket_length_ipv4=_family_value(bucket_length, "IPv4", None),
            bucket_length_ipv6=_family_value(bucket_length, "IPv6", None),
            block_xff=bool(raw.get("BLOCK_XFF", False)),
            allowed_ranges=tuple(allowed_ranges),
            wiki_id=str(raw.get("WIKI_ID", "localwiki")),
            replica_database=raw.get("REPLICA_DATABASE", "default"),
            primary_database=raw.get("PRIMARY_DATABASE", "default"),
            identity_resolver=raw.get("IDENTITY_RESOLVER", "local"),
            central_wiki=(central_wiki.get("code", "meta"), central_wiki.get("family", "meta")),
            message_keys=dict(message_keys),
        )
