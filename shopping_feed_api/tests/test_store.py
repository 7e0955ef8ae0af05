from decimal import Decimal

import pytest

from app.config import Settings, validate_store_settings
from app.core.woo_client import WooCommerceError
from app.core.feed.errors import CatalogUnavailableError
from app.core.feed.store import make_tax_price, resolve_currency, load_store_context, build_channel_info
from conftest import make_record


class FakeSettingsClient:
    def __init__(self, value=None, error: Exception = None):
        self.value = value
        self.error = error
        self.calls = 0

    async def get_setting(self, group, option):
        self.calls += 1
        if self.error:
            raise self.error
        return self.value


def make_settings(**overrides) -> Settings:
    values = dict(
        store_url="https://shop.example.com",
        consumer_key="ck",
        consumer_secret="cs",
    )
    values.update(overrides)
    return Settings(**values)


def test_tax_price_adds_rate():
    tax_price = make_tax_price(Decimal("23"), prices_include_tax=False)
    assert tax_price(make_record(), Decimal("100")) == Decimal("123")


def test_zero_rate_is_identity():
    tax_price = make_tax_price(Decimal("0"), prices_include_tax=False)
    assert tax_price(make_record(), Decimal("19.999")) == Decimal("19.999")


@pytest.mark.asyncio
async def test_configured_currency_wins():
    client = FakeSettingsClient(value="EUR")
    assert await resolve_currency(client, " pln ") == "PLN"
    assert client.calls == 0


@pytest.mark.asyncio
async def test_currency_read_from_store():
    assert await resolve_currency(FakeSettingsClient(value="usd"), None) == "USD"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "client",
    [
        FakeSettingsClient(error=WooCommerceError("HTTP 401: unauthorized")),
        FakeSettingsClient(value=""),
    ]
)
async def test_currency_unavailable(client):
    with pytest.raises(CatalogUnavailableError):
        await resolve_currency(client, None)


@pytest.mark.asyncio
async def test_load_store_context_and_channel():
    settings = make_settings(currency="USD", tax_rate=Decimal("8"), feed_title="Garden Lawn Feed")
    store = await load_store_context(FakeSettingsClient(), settings)
    assert store.base_url == "https://shop.example.com/"
    assert store.currency == "USD"
    assert store.tax_price(make_record(), Decimal("50")) == Decimal("54.00")

    channel = build_channel_info(settings, store)
    assert channel.title == "Garden Lawn Feed"
    assert channel.link == "https://shop.example.com/"
    assert channel.description == "Product feed for Google Merchant Center"


@pytest.mark.parametrize(
    "overrides, valid",
    [
        ({}, True),
        ({"consumer_key": "", "consumer_secret": "", "wp_username": "admin", "wp_app_password": "x y z"}, True),
        ({"store_url": "shop.example.com"}, False),
        ({"store_url": ""}, False),
        ({"consumer_key": "", "consumer_secret": ""}, False),
        ({"tax_rate": Decimal("-1")}, False),
    ]
)
def test_validate_store_settings(overrides, valid):
    ok, message = validate_store_settings(make_settings(**overrides))
    assert ok is valid
    assert (message == "") is valid
