"""
XML Writer for the Google Shopping (Merchant Center) RSS feed.
"""

import logging
import xml.etree.ElementTree as ET
from xml.dom import minidom
from typing import Iterable, List

from app.core.utils import strip_invalid_xml_chars
from .errors import FeedSerializationError
from .models import FeedItem, ChannelInfo


logger = logging.getLogger(__name__)

# Google Shopping namespace
G_NS = 'http://base.google.com/ns/1.0'
G_PREFIX = 'g'


def _add_text_node(parent: ET.Element, tag: str, value: str) -> ET.Element:
    """Append <tag>value</tag>, stripping characters XML 1.0 cannot carry."""
    element = ET.SubElement(parent, tag)
    element.text = strip_invalid_xml_chars(value)
    return element


def build_feed_tree(channel: ChannelInfo, items: Iterable[FeedItem]) -> ET.Element:
    """
    Build the RSS 2.0 element tree.

    The g: prefix is written literally and declared once on <rss>, so the
    output never carries generated ns0: prefixes or a duplicated xmlns:g.

    Args:
        channel: Channel title/link/description
        items: Feed items, emitted in the given order

    Returns:
        The <rss> root element
    """
    rss = ET.Element('rss', {'version': '2.0', f'xmlns:{G_PREFIX}': G_NS})

    channel_elem = ET.SubElement(rss, 'channel')
    _add_text_node(channel_elem, 'title', channel.title)
    _add_text_node(channel_elem, 'link', channel.link)
    _add_text_node(channel_elem, 'description', channel.description)

    for item in items:
        item_elem = ET.SubElement(channel_elem, 'item')
        for name, value in item.feed_fields():
            _add_text_node(item_elem, f'{G_PREFIX}:{name}', value)

    return rss


def serialize_feed(root: ET.Element) -> bytes:
    """
    Serialize the tree to pretty-printed UTF-8 XML.

    The XML declaration is the very first thing in the output. The text is
    re-parsed before returning; anything that is not well-formed raises
    FeedSerializationError instead of producing a feed Merchant Center rejects.
    """
    try:
        xml_string = ET.tostring(root, encoding='unicode', method='xml')
    except Exception as e:
        raise FeedSerializationError(f"Could not serialize feed tree: {e}") from e

    try:
        dom = minidom.parseString(xml_string)
    except Exception as e:
        logger.error(f"Feed XML is not well-formed: {e}")
        logger.debug(f"XML string (first 1000 chars):\n{xml_string[:1000]}")
        raise FeedSerializationError(f"Feed XML is not well-formed: {e}") from e

    try:
        pretty_xml = dom.toprettyxml(indent='  ', encoding='utf-8')
    finally:
        dom.unlink()

    return pretty_xml.strip()


def write_feed_xml(channel: ChannelInfo, items: List[FeedItem]) -> bytes:
    """
    Generate the Google Shopping feed document.

    Returns:
        UTF-8 encoded XML bytes

    Raises:
        FeedSerializationError: If the document cannot be produced
    """
    logger.info(f"Building Google Shopping XML for {len(items)} items")
    root = build_feed_tree(channel, items)
    content = serialize_feed(root)
    logger.info(f"Feed XML ready ({len(content)} bytes)")
    return content
