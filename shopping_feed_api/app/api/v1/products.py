"""
Product structured data endpoints.
"""

import logging
from fastapi import APIRouter, HTTPException, status, Depends
from fastapi.responses import JSONResponse

from app.deps import get_catalog_source, get_store_context
from app.core.feed.catalog import CatalogSource
from app.core.feed.errors import CatalogUnavailableError
from app.core.feed.models import StoreContext
from app.core.feed.schema_org import build_product_schema
from app.schemas.common import ErrorResponse

router = APIRouter()

logger = logging.getLogger(__name__)


@router.get(
    "/{product_id}/schema",
    responses={404: {"model": ErrorResponse}, 503: {"model": ErrorResponse}}
)
async def get_product_schema(
    product_id: int,
    catalog: CatalogSource = Depends(get_catalog_source),
    store: StoreContext = Depends(get_store_context)
):
    """schema.org Product JSON-LD for one feed-eligible product."""
    try:
        record = await catalog.get_product(product_id)
    except CatalogUnavailableError as e:
        logger.error(f"Product {product_id} schema failed, catalog unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Catalog unavailable: {e}"
        )

    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Product {product_id} not found"
        )

    return JSONResponse(
        content=build_product_schema(record, store),
        media_type="application/ld+json"
    )
