from __future__ import annotations

from unittest import mock

from django.contrib.auth.models import User
from django.test import SimpleTestCase, TestCase

from globalblocking.config import GlobalBlockingConfig
from globalblocking.models import BlockRecord
from globalblocking.services.identity import (
    CentralAuthIdentityResolver,
    IdentityResolver,
    LocalIdentityResolver,
    build_identity_resolver,
)


class FakeRequest:
    def __init__(self, data):
        self._data = data

    def submit(self):
        return self._data


class FakeSite:
    def __init__(self):
        self.accounts: dict[str, dict] = {}
        self.requests: list[dict] = []

    def simple_request(self, **kwargs):
        self.requests.append(kwargs)
        info = None
        if "guiuser" in kwargs:
            info = self.accounts.get(kwargs["guiuser"])
        elif "guiid" in kwargs:
            info = next(
                (a for a in self.accounts.values() if a["id"] == kwargs["guiid"]), None
            )
        return FakeRequest({"query": {"globaluserinfo": info or {"missing": True}}})


class LocalIdentityResolverTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user("Example")

    def setUp(self):
        self.resolver = LocalIdentityResolver("testwiki")

    def test_id_and_name(self):
        self.assertEqual(self.resolver.id_for("Example"), self.user.pk)
        self.assertEqual(self.resolver.name_for(self.user.pk), "Example")
        self.assertIsNone(self.resolver.id_for("Missing"))
        self.assertIsNone(self.resolver.id_for(""))
        self.assertIsNone(self.resolver.name_for(0))

    def test_attached_only_to_local_wiki(self):
        self.assertTrue(self.resolver.is_attached(self.user.pk, "testwiki"))
        self.assertTrue(self.resolver.is_local_identity(self.user.pk))
        self.assertFalse(self.resolver.is_attached(self.user.pk, "metawiki"))
        self.assertFalse(self.resolver.is_attached(self.user.pk + 1000, "testwiki"))

    def test_blocker_display_name(self):
        local = BlockRecord(id=1, blocker_central_id=self.user.pk, blocker_wiki="testwiki")
        remote = BlockRecord(id=2, blocker_central_id=self.user.pk, blocker_wiki="metawiki")
        unknown = BlockRecord(id=3, blocker_central_id=9999, blocker_wiki="metawiki")

        self.assertEqual(self.resolver.blocker_display_name(local), "Example")
        self.assertEqual(self.resolver.blocker_display_name(remote), "metawiki>Example")
        self.assertEqual(self.resolver.blocker_display_name(unknown), "metawiki>#9999")


class BlockerDisplayFailureTests(SimpleTestCase):
    def test_lookup_failure_falls_back_to_id(self):
        class BrokenResolver(IdentityResolver):
            def name_for(self, central_id):
                raise RuntimeError("central wiki unreachable")

        record = BlockRecord(id=1, blocker_central_id=7, blocker_wiki="metawiki")

        with self.assertLogs("globalblocking.services.identity", level="ERROR"):
            name = BrokenResolver("testwiki").blocker_display_name(record)

        self.assertEqual(name, "metawiki>#7")


class CentralAuthIdentityResolverTests(SimpleTestCase):
    def setUp(self):
        self.fake_site = FakeSite()
        self.fake_site.accounts["Steward"] = {
            "id": 77,
            "name": "Steward",
            "merged": [{"wiki": "metawiki"}, {"wiki": "testwiki"}],
        }
        self.fake_site.accounts["Remote"] = {
            "id": 88,
            "name": "Remote",
            "merged": [{"wiki": "dewiki"}],
        }
        self.site_patcher = mock.patch(
            "globalblocking.services.identity.pywikibot.Site",
            return_value=self.fake_site,
        )
        self.mock_site = self.site_patcher.start()
        self.addCleanup(self.site_patcher.stop)
        self.resolver = CentralAuthIdentityResolver("testwiki", "meta", "meta")

    def test_site_is_built_from_central_wiki(self):
        self.mock_site.assert_called_once_with(code="meta", fam="meta")

    def test_id_for_queries_globaluserinfo(self):
        self.assertEqual(self.resolver.id_for("Steward"), 77)
        request = self.fake_site.requests[0]
        self.assertEqual(request["action"], "query")
        self.assertEqual(request["meta"], "globaluserinfo")
        self.assertEqual(request["guiuser"], "Steward")

    def test_answers_are_cached(self):
        self.resolver.id_for("Steward")
        self.resolver.id_for("Steward")
        self.assertEqual(self.resolver.name_for(77), "Steward")

        self.assertEqual(len(self.fake_site.requests), 1)

    def test_missing_account(self):
        self.assertIsNone(self.resolver.id_for("Nobody"))
        self.assertIsNone(self.resolver.name_for(12345))
        self.assertFalse(self.resolver.is_attached(12345, "testwiki"))

    def test_is_attached_uses_merged_accounts(self):
        self.assertTrue(self.resolver.is_attached(77, "metawiki"))
        self.assertTrue(self.resolver.is_local_identity(77))
        self.assertFalse(self.resolver.is_local_identity(88))

    def test_blocker_display_name(self):
        attached = BlockRecord(id=1, blocker_central_id=77, blocker_wiki="metawiki")
        elsewhere = BlockRecord(id=2, blocker_central_id=88, blocker_wiki="dewiki")

        self.assertEqual(self.resolver.blocker_display_name(attached), "Steward")
        self.assertEqual(self.resolver.blocker_display_name(elsewhere), "dewiki>Remote")

    def test_build_identity_resolver(self):
        config = GlobalBlockingConfig(wiki_id="testwiki", identity_resolver="centralauth")
        self.assertIsInstance(build_identity_resolver(config), CentralAuthIdentityResolver)
        self.assertIsInstance(
            build_identity_resolver(GlobalBlockingConfig()), LocalIdentityResolver
        )
