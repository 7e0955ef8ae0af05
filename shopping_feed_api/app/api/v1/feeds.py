"""
Google Shopping feed endpoint.
"""

import logging
from fastapi import APIRouter, HTTPException, status, Depends
from fastapi.responses import Response

from app.config import Settings, get_settings
from app.deps import get_catalog_source, get_store_context, get_segment_lookup
from app.core.feed.catalog import CatalogSource
from app.core.feed.errors import CatalogUnavailableError, FeedSerializationError
from app.core.feed.models import StoreContext
from app.core.feed.segments import SegmentLookup
from app.core.feed.service import generate_feed
from app.core.feed.store import build_channel_info
from app.schemas.common import ErrorResponse

router = APIRouter()

logger = logging.getLogger(__name__)

FEED_MEDIA_TYPE = "application/xml; charset=utf-8"


@router.get(
    "/google.xml",
    response_class=Response,
    responses={
        200: {"content": {"application/xml": {}}},
        500: {"model": ErrorResponse},
        503: {"model": ErrorResponse}
    }
)
async def google_shopping_feed(
    catalog: CatalogSource = Depends(get_catalog_source),
    store: StoreContext = Depends(get_store_context),
    segments: SegmentLookup = Depends(get_segment_lookup),
    settings: Settings = Depends(get_settings)
):
    """
    Google Merchant Center product feed (RSS 2.0 with the g: namespace).

    The body is sent only once the whole document is serialized; failures
    return a JSON error and never a truncated XML body.
    """
    try:
        result = await generate_feed(
            catalog=catalog,
            store=store,
            channel=build_channel_info(settings, store),
            default_brand=settings.default_brand,
            segments=segments,
            segment_concurrency=settings.segment_concurrency
        )
    except CatalogUnavailableError as e:
        logger.error(f"Feed generation aborted, catalog unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Catalog unavailable: {e}"
        )
    except FeedSerializationError as e:
        logger.error(f"Feed generation aborted, serialization failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Feed serialization failed: {e}"
        )

    return Response(content=result.content, media_type=FEED_MEDIA_TYPE)
