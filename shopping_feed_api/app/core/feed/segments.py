"""
Performance segment lookup (custom_label_0).

Segments (e.g. STAR, ZOMBIE, POTENTIAL) are computed elsewhere and stored
per product; the feed only reads them.
"""

import asyncio
import logging
from typing import Optional, Dict, Protocol

import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError, TimeoutError as RedisTimeoutError


logger = logging.getLogger(__name__)

# Failures of the store itself rather than of a single key
STORE_UNAVAILABLE_ERRORS = (RedisConnectionError, RedisTimeoutError, OSError, asyncio.TimeoutError)


class SegmentLookup(Protocol):
    async def lookup(self, product_id: int) -> Optional[str]:
        ...


class NullSegmentLookup:
    """Segment labels disabled."""

    async def lookup(self, product_id: int) -> Optional[str]:
        return None


class StaticSegmentLookup:
    """In-memory segments keyed by product id."""

    def __init__(self, segments: Optional[Dict[int, str]] = None):
        self.segments = dict(segments or {})

    async def lookup(self, product_id: int) -> Optional[str]:
        return self.segments.get(product_id) or None


class RedisSegmentLookup:
    """
    Segments stored as plain string keys: "{prefix}{product_id}" -> label.
    """

    def __init__(self, redis: aioredis.Redis, key_prefix: str = "feed:segment:"):
        self.redis = redis
        self.key_prefix = key_prefix

    def key_for(self, product_id: int) -> str:
        return f"{self.key_prefix}{product_id}"

    async def lookup(self, product_id: int) -> Optional[str]:
        value = await self.redis.get(self.key_for(product_id))
        if value is None:
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8", errors="replace")
        value = value.strip()
        return value or None


class GuardedSegmentLookup:
    """
    Wraps a lookup for one feed run.

    Once the store proves unreachable, the remaining products get no label
    without another round trip. Other errors affect only the product at hand.
    """

    def __init__(self, segments: SegmentLookup):
        self.segments = segments
        self.unavailable = False

    async def lookup(self, product_id: int) -> Optional[str]:
        if self.unavailable:
            return None
        try:
            return await self.segments.lookup(product_id)
        except STORE_UNAVAILABLE_ERRORS as e:
            if not self.unavailable:
                logger.warning(f"Segment store unavailable, skipping remaining lookups: {e}")
            self.unavailable = True
            return None


async def safe_lookup(segments: SegmentLookup, product_id: int) -> Optional[str]:
    """Look up a segment; any failure means "no label" and never propagates."""
    try:
        return await segments.lookup(product_id)
    except Exception as e:
        logger.warning(f"Segment lookup failed for product {product_id}: {e}")
        return None
