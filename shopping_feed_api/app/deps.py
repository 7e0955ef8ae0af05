"""
Dependency injection for FastAPI.
"""

from typing import AsyncIterator, Optional
import redis.asyncio as aioredis
from fastapi import Depends, HTTPException, status

from app.config import Settings, get_settings, validate_store_settings
from app.core.woo_client import WooClient
from app.core.feed.catalog import WooCatalogSource, CatalogSource
from app.core.feed.errors import CatalogUnavailableError
from app.core.feed.models import StoreContext
from app.core.feed.segments import SegmentLookup, RedisSegmentLookup, NullSegmentLookup
from app.core.feed.store import load_store_context


_redis_client: Optional[aioredis.Redis] = None


async def get_redis() -> aioredis.Redis:
    """Get Redis client (singleton) with lazy connection."""
    global _redis_client
    if _redis_client is None:
        settings = get_settings()
        _redis_client = aioredis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=1.0,
            socket_timeout=3.0,
            retry_on_timeout=True,
            health_check_interval=30
        )
    return _redis_client


async def close_redis():
    """Close Redis connection."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


async def get_woo_client(settings: Settings = Depends(get_settings)) -> AsyncIterator[WooClient]:
    """
    Create a WooClient for the configured store, closed after the request.

    Raises:
        HTTPException: If store settings are incomplete.
    """
    is_valid, error = validate_store_settings(settings)
    if not is_valid:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error
        )

    # Prefer WooCommerce API credentials
    if settings.consumer_key and settings.consumer_secret:
        client = WooClient(
            store_url=settings.store_url,
            consumer_key=settings.consumer_key,
            consumer_secret=settings.consumer_secret,
            timeout=settings.request_timeout,
            verify_ssl=settings.verify_ssl
        )
    else:
        client = WooClient(
            store_url=settings.store_url,
            wp_username=settings.wp_username,
            wp_app_password=settings.wp_app_password,
            timeout=settings.request_timeout,
            verify_ssl=settings.verify_ssl
        )

    try:
        yield client
    finally:
        await client.close()


def get_catalog_source(client: WooClient = Depends(get_woo_client)) -> CatalogSource:
    return WooCatalogSource(client)


async def get_store_context(
    client: WooClient = Depends(get_woo_client),
    settings: Settings = Depends(get_settings)
) -> StoreContext:
    try:
        return await load_store_context(client, settings)
    except CatalogUnavailableError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e)
        )


async def get_segment_lookup(settings: Settings = Depends(get_settings)) -> SegmentLookup:
    if not settings.segment_lookup_enabled:
        return NullSegmentLookup()
    redis = await get_redis()
    return RedisSegmentLookup(redis, key_prefix=settings.segment_key_prefix)
