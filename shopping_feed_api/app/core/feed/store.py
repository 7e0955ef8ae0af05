"""
Store context: base URL, currency and tax-inclusive pricing.
"""

import logging
from decimal import Decimal
from typing import Optional

from app.config import Settings
from app.core.woo_client import WooClient, WooCommerceError
from .errors import CatalogUnavailableError
from .models import ProductRecord, StoreContext, ChannelInfo, TaxPriceFunc


logger = logging.getLogger(__name__)

_HUNDRED = Decimal('100')


def make_tax_price(tax_rate: Decimal, prices_include_tax: bool) -> TaxPriceFunc:
    """
    Build the tax-inclusive price function.

    Catalog prices already including tax are returned unchanged; otherwise
    the flat store rate (percent) is added on top.
    """
    multiplier = Decimal('1') + (Decimal(tax_rate) / _HUNDRED)

    def tax_price(record: ProductRecord, base_price: Decimal) -> Decimal:
        if prices_include_tax or tax_rate == 0:
            return base_price
        return base_price * multiplier

    return tax_price


async def resolve_currency(client: WooClient, configured: Optional[str]) -> str:
    """
    Currency from settings, else the store's woocommerce_currency option.

    Raises:
        CatalogUnavailableError: If the store setting cannot be read
    """
    if configured and configured.strip():
        return configured.strip().upper()

    try:
        value = await client.get_setting("general", "woocommerce_currency")
    except WooCommerceError as e:
        raise CatalogUnavailableError(f"Store currency could not be read: {e}") from e

    if not value or not str(value).strip():
        raise CatalogUnavailableError("Store has no currency configured")
    return str(value).strip().upper()


async def load_store_context(client: WooClient, settings: Settings) -> StoreContext:
    currency = await resolve_currency(client, settings.currency)
    base_url = settings.store_url.rstrip('/') + '/'
    logger.debug(f"Store context: base_url={base_url} currency={currency} tax_rate={settings.tax_rate}")
    return StoreContext(
        base_url=base_url,
        currency=currency,
        tax_price=make_tax_price(settings.tax_rate, settings.prices_include_tax),
    )


def build_channel_info(settings: Settings, store: StoreContext) -> ChannelInfo:
    return ChannelInfo(
        title=settings.feed_title,
        link=store.base_url,
        description=settings.feed_description,
    )
