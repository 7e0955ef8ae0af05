"""
Feed generation core module.
"""

from .models import ProductRecord, FeedItem, StoreContext, ChannelInfo, FeedResult
from .errors import FeedError, CatalogUnavailableError, FeedSerializationError
from .fields import derive_feed_item
from .margin import classify_margin
from .xml_writer import write_feed_xml
from .service import generate_feed

__all__ = [
    'ProductRecord',
    'FeedItem',
    'StoreContext',
    'ChannelInfo',
    'FeedResult',
    'FeedError',
    'CatalogUnavailableError',
    'FeedSerializationError',
    'derive_feed_item',
    'classify_margin',
    'write_feed_xml',
    'generate_feed'
]
