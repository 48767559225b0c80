from __future__ import annotations

from django.utils.functional import SimpleLazyObject

from .config import GlobalBlockingConfig
from .services import GlobalBlockLookup, LookupCache, RequestMetadata


class GlobalBlockLookupMiddleware:
    """Gives every request its own global block lookup and result cache.

    The cache is cleared when the response has been produced, so results never
    carry over from one request to the next.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        config = GlobalBlockingConfig.from_settings()
        cache = LookupCache()
        request.global_block_lookup = SimpleLazyObject(
            lambda: GlobalBlockLookup(config, cache=cache)
        )
        request.global_block_metadata = RequestMetadata.from_request(
            request, trust_forwarded=config.block_xff
        )
        try:
            return self.get_response(request)
        finally:
            cache.clear()
