"""
Catalog source: feed-eligible products from WooCommerce.
"""

import logging
from decimal import Decimal
from typing import List, Optional, Dict, Any, Protocol

from app.core.woo_client import WooClient, WooCommerceError
from app.core.image_resolver import resolve_image_url
from app.core.utils import to_decimal, first_non_empty
from .errors import CatalogUnavailableError
from .models import ProductRecord


logger = logging.getLogger(__name__)

ELIGIBLE_STATUS = 'publish'
ELIGIBLE_VISIBILITY = ('visible', 'catalog', 'search')

COST_META_KEYS = ('_wc_cog_cost', '_cost', 'cost')
GTIN_META_KEYS = ('_global_unique_id', 'gtin', '_gtin', 'gtin13', 'GTIN13')
META_DESCRIPTION_KEYS = ('_yoast_wpseo_metadesc', 'rank_math_description')
MANUFACTURER_ATTRIBUTES = ('manufacturer', 'pa_manufacturer', 'brand', 'pa_brand')


class CatalogSource(Protocol):
    async def list_feed_eligible_products(self) -> List[ProductRecord]:
        ...

    async def get_product(self, product_id: int) -> Optional[ProductRecord]:
        ...


def _meta_value(product: Dict[str, Any], keys) -> Any:
    """First non-empty meta_data value among keys, in key priority order."""
    meta = {}
    for entry in product.get('meta_data', []) or []:
        if isinstance(entry, dict) and entry.get('key'):
            meta.setdefault(entry['key'], entry.get('value'))
    for key in keys:
        value = meta.get(key)
        if value not in (None, '', [], {}):
            return value
    return None


def _attribute_text(product: Dict[str, Any], names) -> Optional[str]:
    """First option of the first attribute whose name or slug matches."""
    for attr in product.get('attributes', []) or []:
        if not isinstance(attr, dict):
            continue
        attr_name = str(attr.get('name', '')).strip().lower()
        attr_slug = str(attr.get('slug', '')).strip().lower()
        if attr_name not in names and attr_slug not in names:
            continue
        options = attr.get('options') or []
        if isinstance(options, list) and options:
            text = first_non_empty(*options)
            if text:
                return text
        option = attr.get('option')
        if option:
            return str(option).strip() or None
    return None


def _manufacturer(product: Dict[str, Any]) -> Optional[str]:
    text = _attribute_text(product, MANUFACTURER_ATTRIBUTES)
    if text:
        return text
    # Brands taxonomy (WooCommerce 9.6+)
    for brand in product.get('brands', []) or []:
        if isinstance(brand, dict) and brand.get('name'):
            return str(brand['name']).strip() or None
    return None


def _gtin(product: Dict[str, Any]) -> Optional[str]:
    value = first_non_empty(product.get('global_unique_id'), _meta_value(product, GTIN_META_KEYS))
    return value or None


def is_feed_eligible(product: Dict[str, Any]) -> bool:
    """Published, visible in catalog and/or search, with a positive price."""
    if product.get('status') != ELIGIBLE_STATUS:
        return False
    if product.get('catalog_visibility', 'visible') not in ELIGIBLE_VISIBILITY:
        return False
    final_price = to_decimal(product.get('price'))
    return final_price is not None and final_price > 0


def map_product(product: Dict[str, Any]) -> ProductRecord:
    """
    Convert WooCommerce product JSON into a ProductRecord.

    Raises:
        ValueError: If the product has no usable id
    """
    try:
        product_id = int(product.get('id'))
    except (TypeError, ValueError):
        raise ValueError(f"Product has no valid id: {product.get('id')!r}")

    final_price = to_decimal(product.get('price'))
    regular_price = to_decimal(product.get('regular_price'))
    if regular_price is None or regular_price <= 0:
        regular_price = final_price

    meta_description = _meta_value(product, META_DESCRIPTION_KEYS)

    return ProductRecord(
        product_id=product_id,
        sku=str(product.get('sku') or ''),
        name=str(product.get('name') or ''),
        meta_description=str(meta_description) if meta_description is not None else None,
        short_description=product.get('short_description') or None,
        price=regular_price,
        final_price=final_price if final_price is not None else Decimal('0'),
        cost=to_decimal(_meta_value(product, COST_META_KEYS)),
        manufacturer=_manufacturer(product),
        gtin=_gtin(product),
        url=str(product.get('permalink') or ''),
        image_url=resolve_image_url(product),
        in_stock=product.get('stock_status') == 'instock',
        tax_class=product.get('tax_class') or None,
    )


class WooCatalogSource:
    """Pages through /wc/v3/products and keeps feed-eligible products in listing order."""

    def __init__(self, client: WooClient, per_page: int = 100):
        self.client = client
        self.per_page = per_page

    def _to_records(self, products: List[Dict[str, Any]]) -> List[ProductRecord]:
        records = []
        for product in products:
            if not isinstance(product, dict) or not is_feed_eligible(product):
                continue
            try:
                records.append(map_product(product))
            except Exception as e:
                logger.warning(f"Skipping product {product.get('id')}: {e}")
        return records

    async def list_feed_eligible_products(self) -> List[ProductRecord]:
        """
        Read the whole catalog.

        Raises:
            CatalogUnavailableError: If any page cannot be fetched; no partial list is returned
        """
        records: List[ProductRecord] = []
        page = 1

        while True:
            try:
                result = await self.client.get_products(
                    page=page, per_page=self.per_page, status=ELIGIBLE_STATUS
                )
            except WooCommerceError as e:
                logger.error(f"Catalog page {page} could not be fetched: {e}")
                raise CatalogUnavailableError(f"Catalog page {page} could not be fetched: {e}") from e

            items = result.get('items', [])
            if not items:
                break

            records.extend(self._to_records(items))
            logger.debug(f"Catalog page {page}: {len(items)} products, {len(records)} eligible so far")

            total_pages = result.get('total_pages') or 0
            if len(items) < self.per_page or (total_pages and page >= total_pages):
                break
            page += 1

        logger.info(f"Catalog read: {len(records)} feed-eligible products")
        return records

    async def get_product(self, product_id: int) -> Optional[ProductRecord]:
        """
        Fetch one product; None if it does not exist or is not feed-eligible.

        Raises:
            CatalogUnavailableError: On API failures other than "not found"
        """
        try:
            product = await self.client.get_product(product_id)
        except WooCommerceError as e:
            if "HTTP 404" in str(e):
                return None
            raise CatalogUnavailableError(f"Product {product_id} could not be fetched: {e}") from e

        if not isinstance(product, dict) or not is_feed_eligible(product):
            return None
        records = self._to_records([product])
        return records[0] if records else None
