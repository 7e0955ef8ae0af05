"""
Configuration management for the Shopping Feed API.
"""

from decimal import Decimal
from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings."""

    # Store connection
    store_url: str = Field(default="http://localhost")
    consumer_key: str = Field(default="")
    consumer_secret: str = Field(default="")
    wp_username: str = Field(default="")
    wp_app_password: str = Field(default="")
    request_timeout: float = Field(default=30.0)
    verify_ssl: bool = Field(default=True)

    # Segment labels (custom_label_0)
    redis_url: str = Field(default="redis://localhost:6379/0")
    segment_key_prefix: str = Field(default="feed:segment:")
    segment_lookup_enabled: bool = Field(default=True)
    segment_concurrency: int = Field(default=20)

    # Feed metadata
    feed_title: str = Field(default="Product Feed")
    feed_description: str = Field(default="Product feed for Google Merchant Center")
    default_brand: str = Field(default="Garden Lawn")
    currency: Optional[str] = Field(default=None)  # None = read from store

    # Tax
    tax_rate: Decimal = Field(default=Decimal("0"))  # Percent, e.g. 23 for 23%
    prices_include_tax: bool = Field(default=False)

    log_level: str = Field(default="INFO")

    class Config:
        env_file = ".env"
        case_sensitive = False


_settings = Settings()


def validate_store_settings(settings: Settings) -> tuple[bool, str]:
    """
    Validate store connection settings.

    Args:
        settings: Settings instance.

    Returns:
        Tuple of (is_valid, error_message)
    """
    store_url = (settings.store_url or "").strip()
    if not store_url:
        return False, "store_url is not configured"

    if not store_url.startswith(("http://", "https://")):
        return False, "store_url must start with http:// or https://"

    has_woo_keys = bool(settings.consumer_key and settings.consumer_secret)
    has_wp_password = bool(settings.wp_username and settings.wp_app_password)
    if not has_woo_keys and not has_wp_password:
        return False, "Store credentials not configured (need consumer_key/secret or wp_username/app_password)"

    if settings.tax_rate < 0:
        return False, "tax_rate must not be negative"

    return True, ""


def get_settings() -> Settings:
    """Get application settings."""
    return _settings
