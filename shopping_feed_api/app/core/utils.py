"""
Utility functions.
"""

import re
import html
from decimal import Decimal, InvalidOperation
from typing import Optional, Any


# Characters XML 1.0 cannot carry: C0 controls except tab, LF, CR; plus DEL
_CONTROL_CHARS_RE = re.compile(r'[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]')
# Everything outside the XML 1.0 Char production: the controls above plus
# lone surrogates, U+FFFE and U+FFFF
_XML_INVALID_CHARS_RE = re.compile(
    r'[^\x09\x0A\x0D\x20-\x7E\x80-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]'
)
_TAG_RE = re.compile(r'<[^>]*>')
_WHITESPACE_RE = re.compile(r'\s+')


def strip_control_chars(text: Optional[str]) -> str:
    """Remove characters that are invalid in XML 1.0 text (0x00-0x08, 0x0B, 0x0C, 0x0E-0x1F, 0x7F)."""
    if not text:
        return ''
    return _CONTROL_CHARS_RE.sub('', str(text))


def strip_invalid_xml_chars(text: Optional[str]) -> str:
    """Remove every character an XML 1.0 document cannot contain."""
    if not text:
        return ''
    return _XML_INVALID_CHARS_RE.sub('', str(text))


def collapse_whitespace(text: Optional[str]) -> str:
    """Collapse runs of whitespace into single spaces and trim."""
    if not text:
        return ''
    return _WHITESPACE_RE.sub(' ', text).strip()


def strip_html(text: Optional[str]) -> str:
    """Strip HTML tags and decode entities, returning plain text."""
    if not text:
        return ''
    # Tags become spaces so "<p>a</p><p>b</p>" doesn't glue words together
    text = _TAG_RE.sub(' ', str(text))
    text = html.unescape(text)
    # Entities such as &lt;b&gt; decode into tag-looking text
    text = _TAG_RE.sub(' ', text)
    return collapse_whitespace(text)


def to_decimal(value: Any, default: Optional[Decimal] = None) -> Optional[Decimal]:
    """
    Convert value to Decimal safely.

    Floats go through str() so 19.999 stays 19.999 rather than its binary expansion.
    Returns default for None, empty strings, non-numeric and non-finite values.
    """
    try:
        if value is None or isinstance(value, bool):
            return default
        if isinstance(value, Decimal):
            result = value
        elif isinstance(value, (int, float)):
            result = Decimal(str(value))
        elif isinstance(value, str):
            s = value.strip().replace(',', '')
            if not s:
                return default
            result = Decimal(s)
        else:
            return default
    except (InvalidOperation, ValueError):
        return default
    if not result.is_finite():
        return default
    return result


def first_non_empty(*values: Any) -> str:
    """Return the first value whose trimmed string form is non-empty, else ''."""
    for value in values:
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return ''
