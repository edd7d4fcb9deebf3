from .base import NewsProvider, ProviderResult
from .gnews import GNewsProvider
from .led import LedNewsProvider
from .newsapi import NewsApiProvider
from .rss import RssAggregateProvider, RssFeedProvider

__all__ = [
    "GNewsProvider",
    "LedNewsProvider",
    "NewsApiProvider",
    "NewsProvider",
    "ProviderResult",
    "RssAggregateProvider",
    "RssFeedProvider",
]
