"""
Feed generation service - orchestrates the entire feed generation process.
"""

import asyncio
import logging
from typing import List, Optional

from .catalog import CatalogSource
from .fields import derive_feed_item
from .models import ProductRecord, StoreContext, ChannelInfo, FeedItem, FeedResult
from .segments import SegmentLookup, NullSegmentLookup, GuardedSegmentLookup, safe_lookup
from .xml_writer import write_feed_xml


logger = logging.getLogger(__name__)


async def collect_segments(
    records: List[ProductRecord],
    segments: SegmentLookup,
    concurrency: int = 20
) -> List[Optional[str]]:
    """
    Look up segments for all records concurrently.

    Results are positionally aligned with records. After the first
    connection failure the store is not queried again in this run, so an
    unreachable store costs at most one round of in-flight lookups.
    """
    guarded = GuardedSegmentLookup(segments)
    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def one(record: ProductRecord) -> Optional[str]:
        async with semaphore:
            return await safe_lookup(guarded, record.product_id)

    return await asyncio.gather(*(one(record) for record in records))


async def build_feed_items(
    records: List[ProductRecord],
    store: StoreContext,
    default_brand: str,
    segments: Optional[SegmentLookup] = None,
    segment_concurrency: int = 20
) -> tuple[List[FeedItem], List[int]]:
    """
    Derive feed items in catalog order.

    Returns:
        (items, skipped_product_ids)
    """
    labels = await collect_segments(records, segments or NullSegmentLookup(), segment_concurrency)

    items: List[FeedItem] = []
    skipped: List[int] = []
    for record, segment in zip(records, labels):
        try:
            items.append(derive_feed_item(record, store, default_brand, segment=segment))
        except Exception:
            logger.exception(f"Could not derive feed item for product {record.product_id}, skipping")
            skipped.append(record.product_id)

    return items, skipped


async def generate_feed(
    catalog: CatalogSource,
    store: StoreContext,
    channel: ChannelInfo,
    default_brand: str,
    segments: Optional[SegmentLookup] = None,
    segment_concurrency: int = 20
) -> FeedResult:
    """
    Generate the Google Shopping feed document.

    Args:
        catalog: Source of feed-eligible products
        store: Store context (currency, tax function)
        channel: Channel metadata
        default_brand: Brand for products without a manufacturer
        segments: Segment lookup for custom_label_0 (None disables it)
        segment_concurrency: Max concurrent segment lookups

    Returns:
        FeedResult with the complete serialized document

    Raises:
        CatalogUnavailableError: If the catalog cannot be read
        FeedSerializationError: If the document is not well-formed
    """
    logger.info("Starting Google Shopping feed generation")

    records = await catalog.list_feed_eligible_products()
    items, skipped = await build_feed_items(
        records, store, default_brand, segments, segment_concurrency
    )
    content = write_feed_xml(channel, items)

    logger.info(
        f"Feed generated: {len(items)} items"
        + (f", {len(skipped)} skipped ({', '.join(map(str, skipped))})" if skipped else "")
    )
    return FeedResult(content=content, items_count=len(items), skipped=skipped)
