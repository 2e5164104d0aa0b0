"""
Shared helpers for API endpoints
"""

from typing import Any, Callable, Dict

from fastapi import Request, Response
from fastapi.encoders import jsonable_encoder

from easyprop.core.logging import get_logger
from easyprop.utils.cache import cache, generate_etag

logger = get_logger(__name__)

HOMEPAGE_STATS_KEY = "homepage_stats"
SEARCH_FILTERS_KEY = "search_filters"

# Public reads derived from the property table
LISTING_CACHE_KEYS = (HOMEPAGE_STATS_KEY, SEARCH_FILTERS_KEY)


async def cached_with_etag(
    request: Request,
    response: Response,
    cache_key: str,
    producer: Callable[[], Dict[str, Any]]
):
    """
    Serve a public read through the Redis cache with ETag revalidation.

    Returns either the payload or an empty 304 response when the client's
    If-None-Match header matches the current ETag.
    """
    if_none_match = request.headers.get("if-none-match")

    data = await cache.get(cache_key)
    if data is None:
        data = jsonable_encoder(producer())
        await cache.set(cache_key, data)
    else:
        logger.debug("Cache hit", key=cache_key)

    etag = generate_etag(data)
    if if_none_match == etag:
        return Response(status_code=304, headers={"ETag": etag})

    response.headers["ETag"] = etag
    return data


async def invalidate_listing_caches():
    """Drop cached reads that depend on the property table after a listing changes."""
    for key in LISTING_CACHE_KEYS:
        await cache.delete(key)
