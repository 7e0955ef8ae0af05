"""
Derive Google Shopping feed fields from a catalog record.

Every function here is pure and tolerant of missing data: a field falls back
to its default or is left out, it never raises for a bad attribute.
"""

import html
import logging
from decimal import Decimal, ROUND_HALF_UP, MAX_EMAX, localcontext
from typing import Optional, Any

from app.core.utils import strip_html, strip_control_chars, collapse_whitespace, to_decimal
from .models import ProductRecord, StoreContext, FeedItem
from .margin import classify_margin


logger = logging.getLogger(__name__)

AVAILABILITY_IN_STOCK = 'in stock'
CONDITION_NEW = 'new'

_TWO_PLACES = Decimal('0.01')


def clean_text(value: Any) -> str:
    """Plain text safe for XML: HTML stripped, control characters removed."""
    return strip_html(strip_control_chars(value))


def plain_text(value: Any) -> str:
    """
    Single-line text with entities decoded and control characters removed.

    Markup is not stripped: names such as "Pipe <3/4 inch> adapter" keep
    their angle brackets and the XML writer escapes them.
    """
    return collapse_whitespace(html.unescape(strip_control_chars(value)))


def pick_description(record: ProductRecord) -> str:
    """
    Description priority: meta description -> short description -> name.

    A candidate counts as empty when nothing is left after cleaning, so a
    short description made of markup or control bytes falls through to the name.
    """
    for candidate in (record.meta_description, record.short_description, record.name):
        text = clean_text(candidate)
        if text:
            return text
    return ''


def round_price(amount: Any) -> Decimal:
    """
    Round amount half up to two decimals (19.999 -> 20.00, 0.125 -> 0.13).

    Unparseable amounts give 0.00. Precision grows with the magnitude so a
    huge catalog value is formatted in full instead of raising.
    """
    value = to_decimal(amount, Decimal('0'))
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        ctx.Emax = MAX_EMAX
        return value.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def format_price(amount: Any, currency: str) -> str:
    """Format amount as "<amount> <currency>" with exactly two decimals and no thousands separator."""
    return f"{round_price(amount)} {currency}".strip()


def compute_tax_price(record: ProductRecord, store: StoreContext) -> Decimal:
    """Tax-inclusive final price; falls back to the untaxed final price if the tax function fails."""
    base = to_decimal(record.final_price, Decimal('0'))
    try:
        taxed = to_decimal(store.tax_price(record, base))
    except Exception as e:
        logger.warning(f"Tax calculation failed for product {record.product_id}: {e}")
        return base
    if taxed is None:
        logger.warning(f"Tax calculation returned no value for product {record.product_id}")
        return base
    return taxed


def resolve_brand(record: ProductRecord, default_brand: str) -> str:
    brand = plain_text(record.manufacturer)
    return brand or default_brand


def resolve_gtin(record: ProductRecord) -> Optional[str]:
    gtin = strip_control_chars(record.gtin).strip()
    return gtin or None


def resolve_identifier(record: ProductRecord) -> str:
    """SKU, or the catalog id when the product has no SKU."""
    sku = strip_control_chars(record.sku).strip()
    return sku or str(record.product_id)


def derive_feed_item(
    record: ProductRecord,
    store: StoreContext,
    default_brand: str,
    segment: Optional[str] = None
) -> FeedItem:
    """
    Build the feed item for one product.

    Args:
        record: Catalog record
        store: Store context (currency, tax function)
        default_brand: Brand used when the product has no manufacturer
        segment: Performance segment label, or None to omit custom_label_0

    Returns:
        FeedItem with all required fields populated
    """
    identifier = resolve_identifier(record)
    price_with_tax = compute_tax_price(record, store)
    segment_label = plain_text(segment) or None

    return FeedItem(
        id=identifier,
        title=plain_text(record.name),
        description=pick_description(record),
        link=strip_control_chars(record.url).strip(),
        image_link=strip_control_chars(record.image_url).strip(),
        availability=AVAILABILITY_IN_STOCK,
        price=format_price(price_with_tax, store.currency),
        brand=resolve_brand(record, default_brand),
        gtin=resolve_gtin(record),
        mpn=identifier,
        condition=CONDITION_NEW,
        custom_label_0=segment_label,
        custom_label_1=classify_margin(record.cost, record.price),
    )
