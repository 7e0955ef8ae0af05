import sys
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# Ensure shopping_feed_api/ is on sys.path to allow `import app`
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.core.feed.errors import CatalogUnavailableError  # noqa: E402
from app.core.feed.models import ProductRecord, StoreContext, ChannelInfo  # noqa: E402
from app.core.feed.store import make_tax_price  # noqa: E402


G_NS = 'http://base.google.com/ns/1.0'


class FakeCatalog:
    """Catalog source over a fixed list of records."""

    def __init__(self, records: List[ProductRecord], fail: bool = False):
        self.records = list(records)
        self.fail = fail
        self.calls = 0

    async def list_feed_eligible_products(self) -> List[ProductRecord]:
        self.calls += 1
        if self.fail:
            raise CatalogUnavailableError("database is down")
        return list(self.records)

    async def get_product(self, product_id: int) -> Optional[ProductRecord]:
        if self.fail:
            raise CatalogUnavailableError("database is down")
        for record in self.records:
            if record.product_id == product_id:
                return record
        return None


class FailingSegments:
    """Segment lookup whose backing store is broken for some products."""

    def __init__(self, labels: Dict[int, str], broken=(), error: Optional[Exception] = None):
        self.labels = labels
        self.broken = set(broken)
        self.error = error or ConnectionError("segment store unreachable")
        self.calls = 0

    async def lookup(self, product_id: int) -> Optional[str]:
        self.calls += 1
        if product_id in self.broken:
            raise self.error
        return self.labels.get(product_id)


def make_record(**overrides) -> ProductRecord:
    values = dict(
        product_id=1,
        sku='SKU-1',
        name='Lawn Mower',
        meta_description=None,
        short_description=None,
        price=Decimal('100'),
        final_price=Decimal('100'),
        cost=Decimal('50'),
        manufacturer=None,
        gtin=None,
        url='https://shop.example.com/lawn-mower',
        image_url='https://shop.example.com/media/lawn-mower.jpg',
        in_stock=True,
    )
    values.update(overrides)
    return ProductRecord(**values)


@pytest.fixture
def store() -> StoreContext:
    return StoreContext(
        base_url='https://shop.example.com/',
        currency='USD',
        tax_price=make_tax_price(Decimal('0'), prices_include_tax=False),
    )


@pytest.fixture
def channel() -> ChannelInfo:
    return ChannelInfo(
        title='Product Feed',
        link='https://shop.example.com/',
        description='Product feed for Google Merchant Center',
    )


@pytest.fixture
def two_product_catalog() -> FakeCatalog:
    product_a = make_record(
        product_id=1, sku='A1', name='Product A',
        price=Decimal('100'), final_price=Decimal('100'), cost=Decimal('50'),
        gtin='123',
    )
    product_b = make_record(
        product_id=2, sku='B1', name='Product B',
        price=Decimal('80'), final_price=Decimal('80'), cost=Decimal('70'),
        gtin=None,
    )
    return FakeCatalog([product_a, product_b])
