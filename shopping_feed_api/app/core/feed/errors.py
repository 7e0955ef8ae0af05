"""
Feed generation errors.
"""


class FeedError(Exception):
    """Base exception for feed generation."""
    pass


class CatalogUnavailableError(FeedError):
    """The catalog could not be read; no feed can be produced."""
    pass


class FeedSerializationError(FeedError):
    """The feed document could not be serialized into well-formed XML."""
    pass
