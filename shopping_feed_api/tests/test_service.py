import xml.etree.ElementTree as ET
from decimal import Decimal

import pytest
from redis.exceptions import (
    ConnectionError as RedisConnectionError,
    ResponseError,
    TimeoutError as RedisTimeoutError,
)

from app.core.feed.errors import CatalogUnavailableError
from app.core.feed.margin import HIGH_MARGIN, LOW_MARGIN
from app.core.feed.segments import StaticSegmentLookup
from app.core.feed.service import generate_feed, build_feed_items, collect_segments
from conftest import G_NS, FakeCatalog, FailingSegments, make_record


def g(name: str) -> str:
    return f'{{{G_NS}}}{name}'


def _items(content: bytes):
    return ET.fromstring(content).find('channel').findall('item')


def _item_dicts(content: bytes):
    return [
        [(child.tag, child.text) for child in item]
        for item in _items(content)
    ]


@pytest.mark.asyncio
async def test_two_product_scenario(two_product_catalog, store, channel):
    segments = StaticSegmentLookup({1: 'STAR'})
    result = await generate_feed(
        two_product_catalog, store, channel, 'Garden Lawn', segments=segments
    )

    assert result.items_count == 2
    items = _items(result.content)
    assert len(items) == 2

    product_a, product_b = items
    assert product_a.findtext(g('id')) == 'A1'
    assert product_a.findtext(g('gtin')) == '123'
    assert product_a.findtext(g('custom_label_0')) == 'STAR'
    assert product_a.findtext(g('custom_label_1')) == HIGH_MARGIN
    assert product_a.findtext(g('price')) == '100.00 USD'

    assert product_b.findtext(g('id')) == 'B1'
    assert product_b.find(g('gtin')) is None
    assert product_b.find(g('custom_label_0')) is None
    assert product_b.findtext(g('custom_label_1')) == LOW_MARGIN
    assert product_b.findtext(g('price')) == '80.00 USD'


@pytest.mark.asyncio
async def test_generation_is_idempotent(two_product_catalog, store, channel):
    segments = StaticSegmentLookup({1: 'STAR', 2: 'ZOMBIE'})
    first = await generate_feed(two_product_catalog, store, channel, 'Garden Lawn', segments)
    second = await generate_feed(two_product_catalog, store, channel, 'Garden Lawn', segments)
    assert _item_dicts(first.content) == _item_dicts(second.content)


@pytest.mark.asyncio
async def test_catalog_order_is_preserved_with_concurrent_lookups(store, channel):
    records = [make_record(product_id=n, sku=f'SKU-{n}') for n in range(50)]
    segments = StaticSegmentLookup({n: f'SEG-{n}' for n in range(0, 50, 3)})
    result = await generate_feed(
        FakeCatalog(records), store, channel, 'Garden Lawn', segments, segment_concurrency=4
    )
    items = _items(result.content)
    assert [i.findtext(g('id')) for i in items] == [f'SKU-{n}' for n in range(50)]
    for n, item in enumerate(items):
        expected = f'SEG-{n}' if n % 3 == 0 else None
        assert item.findtext(g('custom_label_0')) == expected


@pytest.mark.asyncio
async def test_segment_failure_only_drops_that_label(store, channel):
    records = [make_record(product_id=1, sku='A1'), make_record(product_id=2, sku='B1')]
    segments = FailingSegments(
        {1: 'STAR', 2: 'POTENTIAL'},
        broken=(1,),
        error=ResponseError("WRONGTYPE Operation against a key holding the wrong kind of value"),
    )
    result = await generate_feed(
        FakeCatalog(records), store, channel, 'Garden Lawn', segments, segment_concurrency=1
    )

    product_a, product_b = _items(result.content)
    assert product_a.find(g('custom_label_0')) is None
    assert product_a.findtext(g('custom_label_1')) is not None
    assert product_b.findtext(g('custom_label_0')) == 'POTENTIAL'


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        ConnectionError("segment store unreachable"),
        RedisConnectionError("Error 111 connecting to localhost:6379. Connection refused."),
        RedisTimeoutError("Timeout reading from socket"),
    ]
)
async def test_unreachable_segment_store_is_not_queried_per_product(store, channel, error):
    records = [make_record(product_id=n, sku=f'SKU-{n}') for n in range(100)]
    segments = FailingSegments({}, broken=range(100), error=error)
    result = await generate_feed(
        FakeCatalog(records), store, channel, 'Garden Lawn', segments, segment_concurrency=4
    )

    assert segments.calls <= 4
    assert result.items_count == 100
    assert result.skipped == []
    assert all(item.find(g('custom_label_0')) is None for item in _items(result.content))


@pytest.mark.asyncio
async def test_catalog_unavailable_propagates(store, channel):
    with pytest.raises(CatalogUnavailableError):
        await generate_feed(FakeCatalog([], fail=True), store, channel, 'Garden Lawn')


@pytest.mark.asyncio
async def test_empty_catalog_gives_empty_channel(store, channel):
    result = await generate_feed(FakeCatalog([]), store, channel, 'Garden Lawn')
    assert result.items_count == 0
    assert _items(result.content) == []


@pytest.mark.asyncio
async def test_dirty_record_does_not_abort_feed(store, channel):
    dirty = make_record(
        product_id=3,
        sku='DIRTY\x00',
        name='Broken\x1b name',
        meta_description='',
        short_description='\x00',
        cost=None,
        manufacturer=None,
        gtin=None,
        final_price=Decimal('19.999'),
    )
    result = await generate_feed(FakeCatalog([dirty]), store, channel, 'Garden Lawn')
    item = _items(result.content)[0]
    assert item.findtext(g('id')) == 'DIRTY'
    assert item.findtext(g('description')) == 'Broken name'
    assert item.findtext(g('price')) == '20.00 USD'
    assert item.findtext(g('brand')) == 'Garden Lawn'
    assert item.findtext(g('custom_label_1')) == 'Unknown Margin'


@pytest.mark.asyncio
async def test_build_feed_items_without_segments(store):
    records = [make_record(product_id=1), make_record(product_id=2, sku='SKU-2')]
    items, skipped = await build_feed_items(records, store, 'Garden Lawn')
    assert skipped == []
    assert [item.custom_label_0 for item in items] == [None, None]


@pytest.mark.asyncio
async def test_collect_segments_aligns_with_records():
    records = [make_record(product_id=n) for n in (5, 6, 7)]
    labels = await collect_segments(records, StaticSegmentLookup({6: 'STAR'}), concurrency=1)
    assert labels == [None, 'STAR', None]


@pytest.mark.asyncio
async def test_huge_price_does_not_drop_the_item(two_product_catalog, store, channel):
    two_product_catalog.records[0] = make_record(
        product_id=1, sku='A1', final_price=Decimal('1E+40')
    )
    result = await generate_feed(two_product_catalog, store, channel, 'Garden Lawn')

    assert result.items_count == 2
    assert result.skipped == []
    assert _items(result.content)[0].findtext(g('price')) == '1' + '0' * 40 + '.00 USD'


@pytest.mark.asyncio
async def test_noncharacters_and_lone_surrogates_are_stripped(store, channel):
    name = 'Bad' + chr(0xFFFE) + ' name' + chr(0xD800)
    record = make_record(name=name, manufacturer='Acme' + chr(0xFFFF))
    result = await generate_feed(FakeCatalog([record]), store, channel, 'Garden Lawn')

    item = _items(result.content)[0]
    assert item.findtext(g('title')) == 'Bad name'
    assert item.findtext(g('brand')) == 'Acme'


@pytest.mark.asyncio
async def test_angle_brackets_in_title_survive(store, channel):
    record = make_record(name='Pipe <3/4 inch> adapter', manufacturer='Hose & <Co>')
    result = await generate_feed(FakeCatalog([record]), store, channel, 'Garden Lawn')

    item = _items(result.content)[0]
    assert item.findtext(g('title')) == 'Pipe <3/4 inch> adapter'
    assert item.findtext(g('brand')) == 'Hose & <Co>'
