from .parser import parse_feed
from .registry import (
    DEFAULT_FEEDS,
    SCOPES,
    FeedEntry,
    FeedRegistry,
    default_registry,
    format_source_name,
)

__all__ = [
    "DEFAULT_FEEDS",
    "SCOPES",
    "FeedEntry",
    "FeedRegistry",
    "default_registry",
    "format_source_name",
    "parse_feed",
]
