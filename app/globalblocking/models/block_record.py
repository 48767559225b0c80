"""BlockRecord model."""

from __future__ import annotations

from datetime import datetime

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone


class BlockRecord(models.Model):
    """One block in the shared registry, targeting an account or an address range."""

    target_central_id = models.PositiveBigIntegerField(
        default=0,
        help_text="Central id of the blocked account, or 0 for address blocks.",
    )
    target = models.CharField(
        max_length=255,
        help_text="Account name, single address or sanitized CIDR range.",
    )
    blocker_central_id = models.PositiveBigIntegerField(default=0)
    blocker_wiki = models.CharField(max_length=64)
    reason = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Empty means the block never expires.",
    )
    anonymous_only = models.BooleanField(default=False)
    disables_account_creation = models.BooleanField(default=False)
    range_start = models.CharField(max_length=35, blank=True, default="")
    range_end = models.CharField(max_length=35, blank=True, default="")

    class Meta:
        ordering = ["-id"]
        indexes = [
            models.Index(fields=["range_start", "range_end"], name="globalblock_range_idx"),
            models.Index(fields=["target_central_id"], name="globalblock_target_idx"),
            models.Index(fields=["expires_at"], name="globalblock_expiry_idx"),
        ]
        permissions = [
            ("globalblock_exempt", "Exempt from global address blocks"),
            ("ipblock_exempt", "Exempt from all address blocks"),
        ]

    @property
    def is_account_block(self) -> bool:
        return bool(self.target_central_id)

    @property
    def is_range_block(self) -> bool:
        return not self.is_account_block and self.range_start != self.range_end

    @property
    def never_expires(self) -> bool:
        return self.expires_at is None

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at <= (now or timezone.now())

    def clean(self):
        has_range = bool(self.range_start or self.range_end)
        if self.is_account_block == has_range:
            raise ValidationError(
                "A block must target either an account or an address range, not both."
            )
        if has_range and not (self.range_start and self.range_end):
            raise ValidationError("Both range_start and range_end are required.")

    def __str__(self) -> str:
        return f"#{self.pk} {self.target}"
