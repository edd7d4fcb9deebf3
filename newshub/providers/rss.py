from __future__ import annotations

import asyncio
from collections.abc import Sequence

import httpx

from ..config import Settings
from ..errors import ConfigurationError, ProviderError, ProviderErrorKind
from ..feeds.parser import parse_feed
from ..feeds.registry import FeedEntry
from ..http_client import FEED_ACCEPT
from ..logging import get_logger
from ..models.news import Article, NewsQuery
from ..models.raw import RawResponse, RssItem
from .base import NewsProvider, ProviderResult

logger = get_logger().bind(module="rss_provider")


def matches_query(article: Article, text: str | None) -> bool:
    if not text:
        return True
    needle = text.casefold()
    haystack = f"{article.title} {article.description or ''}".casefold()
    return needle in haystack




def filter_result(result: ProviderResult, query: NewsQuery) -> ProviderResult:
    result.articles = [a for a in result.articles if matches_query(a, query.query)]
    result.total_results = len(result.articles)
    return result


class RssFeedProvider(NewsProvider):
    """A single registered feed, tried at its primary URL then at each alternate."""

    tag = "rss"

    def __init__(self, settings: Settings, entry: FeedEntry) -> None:
        super().__init__(f"rss:{entry.source_id}", settings, settings.rss_timeout)
        self.entry = entry

    async def fetch_url(self, client: httpx.AsyncClient, url: str) -> RawResponse:
        response = await client.get(
            url, headers={"Accept": FEED_ACCEPT}, timeout=self.timeout
        )
        response.raise_for_status()
        items = parse_feed(
            response.content,
            source_id=self.entry.source_id,
            source_name=self.entry.name,
            description_limit=self.settings.rss_description_limit,
            max_items=self.settings.rss_max_items,
        )
        return RawResponse(tag="rss", items=list(items))

    async def fetch_raw(self, client: httpx.AsyncClient, query: NewsQuery) -> RawResponse:
        # Each URL gets its own timeout.
        last_error: ProviderError | None = None
        for url in self.entry.urls:
            try:
                return await self.call(self.fetch_url(client, url))
            except ProviderError as exc:
                logger.warning("rss_feed_url_failed", url=url, **exc.as_log_context())
                last_error = exc
        raise last_error or ConfigurationError(self.name, "Feed has no URLs")

    async def fetch(self, client: httpx.AsyncClient, query: NewsQuery) -> ProviderResult:
        raw = await self.fetch_raw(client, query)
        return filter_result(self.to_result(raw), query)


class RssAggregateProvider(NewsProvider):
    """Every registered feed of one scope, fetched in parallel.

    Failed feeds are logged and left out; the call only fails when no feed
    answered at all.
    """

    tag = "rss"

    def __init__(self, settings: Settings, scope: str, entries: Sequence[FeedEntry]) -> None:
        super().__init__(f"rss:{scope}", settings, settings.rss_timeout)
        self.scope = scope
        self.feeds = [RssFeedProvider(settings, entry) for entry in entries]

    async def fetch_raw(self, client: httpx.AsyncClient, query: NewsQuery) -> RawResponse:
        if not self.feeds:
            raise ConfigurationError(self.name, f"No feeds registered for {self.scope} scope")

        results = await asyncio.gather(
            *(feed.fetch_raw(client, query) for feed in self.feeds),
            return_exceptions=True,
        )

        items: list[RssItem] = []
        succeeded = 0
        for feed, result in zip(self.feeds, results, strict=False):
            if isinstance(result, RawResponse):
                succeeded += 1
                items.extend(result.items)
            elif isinstance(result, Exception):
                logger.warning(
                    "rss_feed_failed",
                    scope=self.scope,
                    feed=feed.entry.source_id,
                    error=str(result),
                )
            else:
                raise result

        if not succeeded:
            raise ProviderError(
                self.name,
                ProviderErrorKind.HTTP,
                f"All {len(self.feeds)} {self.scope} feeds failed",
            )
        logger.info(
            "rss_scope_fetched",
            scope=self.scope,
            feeds=len(self.feeds),
            succeeded=succeeded,
            items=len(items),
        )
        return RawResponse(tag="rss", items=items)

    async def fetch(self, client: httpx.AsyncClient, query: NewsQuery) -> ProviderResult:
        raw = await self.fetch_raw(client, query)
        return filter_result(self.to_result(raw), query)
