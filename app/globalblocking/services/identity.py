"""Mapping between account names and central identities."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

import pywikibot
from django.contrib.auth import get_user_model

if TYPE_CHECKING:
    from globalblocking.config import GlobalBlockingConfig
    from globalblocking.models import BlockRecord

logger = logging.getLogger(__name__)

os.environ.setdefault("PYWIKIBOT2_NO_USER_CONFIG", "1")
os.environ.setdefault("PYWIKIBOT_NO_USER_CONFIG", "2")


class IdentityResolver:
    """Resolves central ids and decides how blockers are displayed."""

    def __init__(self, wiki_id: str):
        self.wiki_id = wiki_id

    def id_for(self, name: str) -> int | None:
        raise NotImplementedError

    def name_for(self, central_id: int) -> str | None:
        raise NotImplementedError

    def is_attached(self, central_id: int, wiki_id: str) -> bool:
        raise NotImplementedError

    def is_local_identity(self, central_id: int) -> bool:
        return self.is_attached(central_id, self.wiki_id)

    def blocker_display_name(self, record: BlockRecord) -> str:
        """
        Name to show for the account that placed a block.

        Blockers from this wiki, and blockers whose account is attached both
        here and on the wiki the block was placed from, are shown by name.
        Anyone else gets a wiki-qualified name such as ``metawiki>Steward``.
        """
        central_id = record.blocker_central_id
        try:
            name = self.name_for(central_id) if central_id else None
            if name is None:
                return f"{record.blocker_wiki}>#{central_id}"
            if record.blocker_wiki == self.wiki_id:
                return name
            if self.is_local_identity(central_id) and self.is_attached(
                central_id, record.blocker_wiki
            ):
                return name
        except Exception:
            logger.exception("Failed to resolve blocker %s of block %s", central_id, record.pk)
            return f"{record.blocker_wiki}>#{central_id}"
        return f"{record.blocker_wiki}>{name}"


class LocalIdentityResolver(IdentityResolver):
    """Uses local account ids as central ids, for single-wiki deployments and tests."""

    def id_for(self, name: str) -> int | None:
        if not name:
            return None
        user_model = get_user_model()
        return (
            user_model.objects.filter(**{user_model.USERNAME_FIELD: name})
            .values_list("pk", flat=True)
            .first()
        )

    def name_for(self, central_id: int) -> str | None:
        if not central_id:
            return None
        user_model = get_user_model()
        return (
            user_model.objects.filter(pk=central_id)
            .values_list(user_model.USERNAME_FIELD, flat=True)
            .first()
        )

    def is_attached(self, central_id: int, wiki_id: str) -> bool:
        if wiki_id != self.wiki_id or not central_id:
            return False
        return get_user_model().objects.filter(pk=central_id).exists()


class CentralAuthIdentityResolver(IdentityResolver):
    """Looks up global accounts on the central wiki through the globaluserinfo API."""

    def __init__(self, wiki_id: str, code: str, family: str):
        super().__init__(wiki_id)
        self.site = pywikibot.Site(code=code, fam=family)
        self._by_name: dict[str, dict | None] = {}
        self._by_id: dict[int, dict | None] = {}

    def _query(self, **params) -> dict | None:
        request = self.site.simple_request(
            action="query",
            meta="globaluserinfo",
            guiprop="merged",
            formatversion=2,
            **params,
        )
        response = request.submit()
        info = response.get("query", {}).get("globaluserinfo", {})
        if not info or "missing" in info:
            return None
        return info

    def _info_for_name(self, name: str) -> dict | None:
        if name not in self._by_name:
            info = self._query(guiuser=name)
            self._by_name[name] = info
            if info is not None:
                self._by_id[int(info["id"])] = info
        return self._by_name[name]

    def _info_for_id(self, central_id: int) -> dict | None:
        if central_id not in self._by_id:
            info = self._query(guiid=central_id)
            self._by_id[central_id] = info
            if info is not None:
                self._by_name[info["name"]] = info
        return self._by_id[central_id]

    def id_for(self, name: str) -> int | None:
        if not name:
            return None
        info = self._info_for_name(name)
        return int(info["id"]) if info else None

    def name_for(self, central_id: int) -> str | None:
        if not central_id:
            return None
        info = self._info_for_id(central_id)
        return info["name"] if info else None

    def is_attached(self, central_id: int, wiki_id: str) -> bool:
        if not central_id:
            return False
        info = self._info_for_id(central_id)
        if not info:
            return False
        return any(account.get("wiki") == wiki_id for account in info.get("merged", []))


def build_identity_resolver(config: GlobalBlockingConfig) -> IdentityResolver:
    if config.identity_resolver == "centralauth":
        code, family = config.central_wiki
        return CentralAuthIdentityResolver(config.wiki_id, code, family)
    return LocalIdentityResolver(config.wiki_id)
