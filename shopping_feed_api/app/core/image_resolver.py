"""
Image resolver for WP Media and FIFU (external URLs).
"""

from typing import Dict, Any


def _fifu_featured_url(product_data: Dict[str, Any]) -> str:
    """Read the FIFU featured image URL from meta_data."""
    for meta in product_data.get("meta_data", []) or []:
        if not isinstance(meta, dict):
            continue
        if meta.get("key") == "fifu_image_url" and meta.get("value"):
            return str(meta["value"]).strip()
    return ""


def resolve_image_url(product_data: Dict[str, Any]) -> str:
    """
    Resolve the featured image URL for a product.

    Handles:
    - WP Media: first entry of product["images"] with a src
    - FIFU: fifu_image_url in meta_data, used when there are no WP images

    Returns:
        Image URL, or "" when the product has none
    """
    for img in product_data.get("images") or []:
        if isinstance(img, dict) and img.get("src"):
            return img["src"]

    return _fifu_featured_url(product_data)
