"""
schema.org Product structured data (JSON-LD) for product pages.

Uses the same description and tax-inclusive price rules as the feed, but
availability reflects the real stock flag.
"""

from typing import Dict, Any

from app.core.utils import collapse_whitespace, strip_control_chars
from .fields import pick_description, compute_tax_price, plain_text, round_price
from .models import ProductRecord, StoreContext


SCHEMA_IN_STOCK = 'https://schema.org/InStock'
SCHEMA_OUT_OF_STOCK = 'https://schema.org/OutOfStock'


def build_product_schema(record: ProductRecord, store: StoreContext) -> Dict[str, Any]:
    price_with_tax = compute_tax_price(record, store)
    price = round_price(price_with_tax)

    schema: Dict[str, Any] = {
        '@context': 'https://schema.org',
        '@type': 'Product',
        'name': plain_text(record.name),
        'description': collapse_whitespace(pick_description(record)),
        'sku': strip_control_chars(record.sku).strip(),
        'image': record.image_url,
        'offers': {
            '@type': 'Offer',
            'price': str(price),
            'priceCurrency': store.currency,
            'availability': SCHEMA_IN_STOCK if record.in_stock else SCHEMA_OUT_OF_STOCK,
            'url': record.url,
        },
    }

    brand = plain_text(record.manufacturer)
    if brand:
        schema['brand'] = {
            '@type': 'Brand',
            'name': brand,
        }

    return schema
