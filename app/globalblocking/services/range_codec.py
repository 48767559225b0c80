"""Encoding of IP addresses and CIDR ranges as sortable fixed-width keys.

IPv4 addresses become 8 upper-case hex digits and IPv6 addresses become the
``v6-`` tag followed by 32 upper-case hex digits, so that comparing two keys
of the same family as strings compares the addresses numerically, and every
IPv6 key sorts after every IPv4 key.
"""

from __future__ import annotations

import ipaddress

from django.db.models import Q

from ..config import KEY_DIGITS, GlobalBlockingConfig
from ..exceptions import InvalidAddress

V6_TAG = "v6-"
HEX_DIGITS = frozenset("0123456789ABCDEF")

Network = ipaddress.IPv4Network | ipaddress.IPv6Network
Address = ipaddress.IPv4Address | ipaddress.IPv6Address


def parse_network(value) -> Network:
    """Parse an address with an optional ``/prefix`` into a network, masking host bits."""
    if not isinstance(value, str):
        raise InvalidAddress(value)
    text = value.strip()
    if not text:
        raise InvalidAddress(value, "empty address")

    address, sep, prefix = text.partition("/")
    if "%" in address:
        raise InvalidAddress(value, "zone identifiers are not supported")
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        raise InvalidAddress(value) from None

    if sep:
        if not (prefix.isascii() and prefix.isdigit()):
            raise InvalidAddress(value, "prefix length must be a number")
        length = int(prefix)
        if length > ip.max_prefixlen:
            raise InvalidAddress(value, f"prefix length must be at most /{ip.max_prefixlen}")
    else:
        length = ip.max_prefixlen
    return ipaddress.ip_network((ip, length), strict=False)


def key_for(ip: Address) -> str:
    if ip.version == 4:
        return f"{int(ip):08X}"
    return f"{V6_TAG}{int(ip):032X}"


def key_value(key: str) -> tuple[int, int]:
    """Return ``(ip_version, integer)`` for an encoded key."""
    if not isinstance(key, str):
        raise InvalidAddress(key, "not an encoded address key")
    if key.startswith(V6_TAG):
        version, digits = 6, key[len(V6_TAG) :]
    else:
        version, digits = 4, key
    if len(digits) != KEY_DIGITS[version] or not set(digits) <= HEX_DIGITS:
        raise InvalidAddress(key, "not an encoded address key")
    return version, int(digits, 16)


def encode(address: str) -> str:
    """Encode an address, or the first address of a CIDR range."""
    return key_for(parse_network(address).network_address)


def decode(key: str) -> str:
    """Return the address an encoded key stands for."""
    version, value = key_value(key)
    ip = ipaddress.IPv4Address(value) if version == 4 else ipaddress.IPv6Address(value)
    return format_address(ip)


def range_size(start: str, end: str) -> int:
    """Number of addresses covered by ``[start, end]``."""
    start_version, start_value = key_value(start)
    end_version, end_value = key_value(end)
    if start_version != end_version or end_value < start_value:
        raise InvalidAddress(f"{start}-{end}", "not a valid encoded range")
    return end_value - start_value + 1


def format_address(ip: Address) -> str:
    if ip.version == 4:
        return str(ip)
    # Eight upper-case groups without leading zeros, e.g. 2000:DEAD:BEEF:A:0:0:0:0
    return ":".join(f"{int(group, 16):X}" for group in ip.exploded.split(":"))


def sanitize(value: str) -> str:
    """Canonical display form of an address or range."""
    network = parse_network(value)
    address = format_address(network.network_address)
    if network.prefixlen == network.max_prefixlen:
        return address
    return f"{address}/{network.prefixlen}"


def is_valid(value) -> bool:
    try:
        parse_network(value)
    except InvalidAddress:
        return False
    return True


def looks_like_address(value) -> bool:
    """Whether ``value`` is meant as an address or range rather than an account name."""
    if not isinstance(value, str):
        return False
    address = value.strip().partition("/")[0]
    try:
        ipaddress.ip_address(address)
    except ValueError:
        return False
    return True


class RangeCodec:
    """Range arithmetic bound to the configured CIDR limits and bucket lengths."""

    def __init__(self, config: GlobalBlockingConfig):
        self.config = config

    encode = staticmethod(encode)
    decode = staticmethod(decode)
    sanitize = staticmethod(sanitize)
    is_valid = staticmethod(is_valid)
    looks_like_address = staticmethod(looks_like_address)
    range_size = staticmethod(range_size)

    def range_bounds(self, value: str) -> tuple[str, str]:
        """Return the ``(start, end)`` keys covering an address or CIDR range."""
        network = parse_network(value)
        limit = self.config.cidr_limit(network.version)
        if network.prefixlen < limit:
            raise InvalidAddress(
                value, f"ranges wider than /{limit} are not allowed for IPv{network.version}"
            )
        return key_for(network.network_address), key_for(network.broadcast_address)

    def bucket(self, start: str) -> str:
        version, _ = key_value(start)
        tag = V6_TAG if version == 6 else ""
        return start[: len(tag) + self.config.bucket_length(version)]

    def containment_condition(self, start: str, end: str) -> Q:
        """Match stored ranges whose envelope contains ``[start, end]``.

        The LIKE bucket only narrows the index scan; containment itself is
        decided by the two comparisons.
        """
        return Q(
            range_start__startswith=self.bucket(start),
            range_start__lte=start,
            range_end__gte=end,
        )

    def in_allowed_ranges(self, address: str | None) -> bool:
        if not address or not self.config.allowed_ranges:
            return False
        try:
            network = parse_network(address)
        except InvalidAddress:
            return False
        for entry in self.config.allowed_ranges:
            allowed = ipaddress.ip_network(entry, strict=False)
            if allowed.version == network.version and network.subnet_of(allowed):
                return True
        return False
