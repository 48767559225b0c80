"""LocalOverride model."""

from __future__ import annotations

from datetime import datetime

from django.db import models
from django.utils import timezone


class LocalOverride(models.Model):
    """Suppresses a global block on one wiki."""

    block = models.ForeignKey(
        "globalblocking.BlockRecord", on_delete=models.CASCADE, related_name="local_overrides"
    )
    wiki = models.CharField(max_length=64)
    overridden_by = models.CharField(max_length=255)
    reason = models.TextField(blank=True, default="")
    expires_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Empty means the override never expires.",
    )
    enabled = models.BooleanField(default=True)

    class Meta:
        unique_together = ("block", "wiki")

    def is_live(self, now: datetime | None = None) -> bool:
        if not self.enabled:
            return False
        return self.expires_at is None or self.expires_at > (now or timezone.now())

    def __str__(self) -> str:
        return f"Override of block #{self.block_id} on {self.wiki}"
