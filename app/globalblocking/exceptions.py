"""Errors raised by the global block lookup."""

from __future__ import annotations

from django.core.exceptions import ImproperlyConfigured


class GlobalBlockingError(Exception):
    """Base class for global blocking errors."""


class InvalidAddress(GlobalBlockingError, ValueError):
    """An address or CIDR range is malformed or wider than the configured limit."""

    def __init__(self, value, reason: str = "not a valid IP address or range"):
        self.value = value
        self.reason = reason
        super().__init__(f"{value!r}: {reason}")


class StoreUnavailable(GlobalBlockingError):
    """The block registry could not be queried."""


class ConfigurationError(GlobalBlockingError, ImproperlyConfigured):
    """The GLOBAL_BLOCKING setting is malformed."""
