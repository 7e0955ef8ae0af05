"""
Feed data models.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Callable, List, Tuple


@dataclass(frozen=True)
class ProductRecord:
    """Read-only catalog record as supplied by the catalog source."""
    product_id: int
    sku: str = ''
    name: str = ''

    # Descriptions (may contain HTML)
    meta_description: Optional[str] = None
    short_description: Optional[str] = None

    # Pricing
    price: Optional[Decimal] = None  # Base (regular) price
    final_price: Decimal = Decimal('0')  # Price actually charged, before tax
    cost: Optional[Decimal] = None

    # Attributes
    manufacturer: Optional[str] = None
    gtin: Optional[str] = None
    url: str = ''
    image_url: str = ''
    in_stock: bool = True
    tax_class: Optional[str] = None


TaxPriceFunc = Callable[[ProductRecord, Decimal], Decimal]


@dataclass
class StoreContext:
    """Store-level values shared by every item of one feed."""
    base_url: str
    currency: str
    tax_price: TaxPriceFunc


@dataclass
class ChannelInfo:
    """RSS channel metadata."""
    title: str
    link: str
    description: str


@dataclass
class FeedItem:
    """Normalized feed item data structure."""
    id: str
    title: str = ''
    description: str = ''
    link: str = ''
    image_link: str = ''
    availability: str = 'in stock'
    price: str = ''  # Already formatted, e.g. "20.00 USD"
    brand: str = ''
    gtin: Optional[str] = None  # Omitted from the feed when None
    mpn: str = ''
    condition: str = 'new'
    custom_label_0: Optional[str] = None  # Performance segment
    custom_label_1: str = ''  # Margin tier

    def feed_fields(self) -> List[Tuple[str, str]]:
        """Return (field, value) pairs in emission order, skipping absent optional fields."""
        fields = [
            ('id', self.id),
            ('title', self.title),
            ('description', self.description),
            ('link', self.link),
            ('image_link', self.image_link),
            ('availability', self.availability),
            ('price', self.price),
            ('brand', self.brand),
        ]
        if self.gtin:
            fields.append(('gtin', self.gtin))
        fields.append(('mpn', self.mpn))
        fields.append(('condition', self.condition))
        if self.custom_label_0:
            fields.append(('custom_label_0', self.custom_label_0))
        fields.append(('custom_label_1', self.custom_label_1))
        return fields


@dataclass
class FeedResult:
    """Serialized feed plus counters for logging."""
    content: bytes
    items_count: int = 0
    skipped: List[int] = field(default_factory=list)
