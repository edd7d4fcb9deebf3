from .news import (
    Article,
    ArticleSource,
    CacheEntry,
    ContentBlock,
    ContentChild,
    FeedHealth,
    NewsQuery,
    NewsResponse,
    SourceCatalog,
    SourceOption,
)
from .raw import ProviderTag, RawResponse

__all__ = [
    "Article",
    "ArticleSource",
    "CacheEntry",
    "ContentBlock",
    "ContentChild",
    "FeedHealth",
    "NewsQuery",
    "NewsResponse",
    "ProviderTag",
    "RawResponse",
    "SourceCatalog",
    "SourceOption",
]
