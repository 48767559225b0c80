from __future__ import annotations

from django.apps import AppConfig


class GlobalBlockingAppConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "globalblocking"
    verbose_name = "Global blocking"

    def ready(self):
        # Fail at startup rather than on the first lookup.
        from .config import GlobalBlockingConfig

        GlobalBlockingConfig.from_settings()
