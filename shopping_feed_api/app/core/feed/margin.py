"""
Margin tier classification (custom_label_1).
"""

from decimal import Decimal
from typing import Any

from app.core.utils import to_decimal


UNKNOWN_MARGIN = 'Unknown Margin'
HIGH_MARGIN = 'High Margin (>40%)'
MEDIUM_MARGIN = 'Medium Margin (20-40%)'
LOW_MARGIN = 'Low Margin (<20%)'

HIGH_MARGIN_THRESHOLD = Decimal('0.40')
MEDIUM_MARGIN_THRESHOLD = Decimal('0.20')


def classify_margin(cost: Any, price: Any) -> str:
    """
    Classify gross margin ((price - cost) / price) into a tier label.

    Lower tier edges are inclusive: exactly 40% is High, exactly 20% is Medium.
    Missing, unparseable or non-positive cost/price gives 'Unknown Margin'.
    """
    cost_value = to_decimal(cost)
    price_value = to_decimal(price)

    if cost_value is None or price_value is None:
        return UNKNOWN_MARGIN
    if price_value <= 0 or cost_value <= 0:
        return UNKNOWN_MARGIN

    margin = (price_value - cost_value) / price_value

    if margin >= HIGH_MARGIN_THRESHOLD:
        return HIGH_MARGIN
    elif margin >= MEDIUM_MARGIN_THRESHOLD:
        return MEDIUM_MARGIN
    else:
        return LOW_MARGIN
