from __future__ import annotations

from django.test import SimpleTestCase

from globalblocking.services import NO_BLOCK, LookupCache, LookupFlags, Resolution
from globalblocking.services.lookup_cache import make_key


class LookupCacheTests(SimpleTestCase):
    def test_put_get_clear(self):
        cache = LookupCache()
        key = make_key("target", None, "1.2.3.4", LookupFlags.NONE)

        self.assertIsNone(cache.get(key))
        cache.put(key, NO_BLOCK)

        self.assertIn(key, cache)
        self.assertIs(cache.get(key), NO_BLOCK)
        cache.clear()
        self.assertEqual(len(cache), 0)

    def test_key_components(self):
        base = make_key("actor", 5, "1.2.3.4", LookupFlags.NONE, ("77.8.9.10",))

        self.assertEqual(base, ("actor", 5, "1.2.3.4", 0, ("77.8.9.10",)))
        self.assertNotEqual(base, make_key("target", 5, "1.2.3.4", LookupFlags.NONE, ("77.8.9.10",)))
        self.assertNotEqual(
            base,
            make_key("actor", 5, "1.2.3.4", LookupFlags.EXCLUDE_SOFT_ADDRESS_BLOCKS, ("77.8.9.10",)),
        )
        self.assertNotEqual(base, make_key("actor", 5, "1.2.3.4", LookupFlags.NONE))

    def test_empty_identity_and_address_normalised(self):
        self.assertEqual(
            make_key("actor", 0, "", LookupFlags.NONE),
            make_key("actor", None, None, LookupFlags.NONE),
        )

    def test_instances_do_not_share_entries(self):
        first, second = LookupCache(), LookupCache()
        key = make_key("target", None, "1.2.3.4", LookupFlags.NONE)
        first.put(key, Resolution())

        self.assertNotIn(key, second)
