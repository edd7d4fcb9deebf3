from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import httpx

from ..cache import CacheStore, InMemoryCacheStore, query_cache_key
from ..config import Settings, get_settings
from ..errors import (
    AggregationExhausted,
    ConfigurationError,
    ProviderError,
    UnknownSourceError,
)
from ..feeds.health import check_feed
from ..feeds.registry import SCOPES, FeedRegistry, default_registry
from ..http_client import get_http_client
from ..logging import get_logger
from ..models.news import (
    Article,
    ContentBlock,
    ContentChild,
    FeedHealth,
    NewsQuery,
    NewsResponse,
    Region,
    SourceCatalog,
)
from ..normalize import normalize
from ..providers import (
    GNewsProvider,
    LedNewsProvider,
    NewsApiProvider,
    NewsProvider,
    ProviderResult,
    RssAggregateProvider,
    RssFeedProvider,
)

logger = get_logger().bind(module="news_service")

RSS_AGGREGATE = "rss"
CACHE_SOURCE = "cache"


def error_response(message: str) -> NewsResponse:
    return NewsResponse(
        status="error", total_results=0, articles=[], source="none", message=message
    )


def default_providers(settings: Settings) -> dict[str, NewsProvider]:
    return {
        "newsapi": NewsApiProvider(settings),
        "gnews": GNewsProvider(settings),
        "led": LedNewsProvider(settings),
    }


@dataclass(slots=True)
class NewsService:
    """Cache-first aggregation over an ordered chain of news providers.

    ``fetch_news`` never raises for upstream failures: when no provider in the
    resolved chain produces articles, it returns a ``status="error"`` response.
    """

    settings: Settings | None = None
    client: httpx.AsyncClient | None = None
    cache: CacheStore | None = None
    registry: FeedRegistry | None = None
    providers: dict[str, NewsProvider] | None = None

    def __post_init__(self) -> None:
        if self.settings is None:
            self.settings = get_settings()
        if self.cache is None:
            self.cache = InMemoryCacheStore()
        if self.registry is None:
            self.registry = default_registry
        if self.providers is None:
            self.providers = default_providers(self.settings)

    async def fetch_news(self, query: NewsQuery) -> NewsResponse:
        key = query_cache_key(query)
        cached = await self.cache.get(key)
        if cached is not None:
            logger.debug("news_cache_hit", key=key, provider=cached.response.source)
            return cached.response.model_copy(update={"source": CACHE_SOURCE}, deep=True)

        try:
            chain = self.resolve_chain(query)
        except UnknownSourceError as exc:
            logger.warning("news_unknown_source", region=query.region, source=query.source)
            return error_response(str(exc))

        try:
            result = await self._run_chain(chain, query)
        except AggregationExhausted as exc:
            logger.error(
                "news_aggregation_exhausted",
                region=query.region,
                chain=[provider.name for provider in chain],
                attempts=exc.attempts,
            )
            return error_response(str(exc))

        response = NewsResponse(
            status="ok",
            total_results=result.total_results,
            articles=result.articles,
            source=result.provider,
        )
        await self.cache.set(key, response, self.ttl_for(query))
        return response

    async def fetch_feed(self, scope: Region, source_id: str) -> NewsResponse:
        if not self.registry.has(scope, source_id):
            return error_response(str(UnknownSourceError(scope, source_id)))
        return await self.fetch_news(NewsQuery(region=scope, source=source_id))

    async def fetch_region_feeds(self, scope: Region) -> NewsResponse:
        return await self.fetch_news(NewsQuery(region=scope, source=RSS_AGGREGATE))

    def ttl_for(self, query: NewsQuery) -> float:
        if query.is_specific and query.source != RSS_AGGREGATE:
            return self.settings.cache_ttl_specific_seconds
        return self.settings.cache_ttl_seconds

    def resolve_chain(self, query: NewsQuery) -> list[NewsProvider]:
        """Ordered providers to try for ``query``.

        An explicit tenant, category or source yields exactly one provider.
        Otherwise the region's configured chain is used.
        """
        if query.tenant_id:
            return [LedNewsProvider(self.settings, tenant_id=query.tenant_id)]
        if query.category_id:
            return [LedNewsProvider(self.settings, category_id=query.category_id)]
        if query.source:
            if self.registry.has(query.region, query.source):
                entry = self.registry.get(query.region, query.source)
                return [RssFeedProvider(self.settings, entry)]
            if query.source == RSS_AGGREGATE:
                return [self._rss_aggregate(query.region)]
            if query.source in self.providers:
                return [self.providers[query.source]]
            raise UnknownSourceError(query.region, query.source)

        names = (
            self.settings.local_provider_chain
            if query.region == "local"
            else self.settings.global_provider_chain
        )
        chain: list[NewsProvider] = []
        for name in names:
            if name == RSS_AGGREGATE:
                chain.append(self._rss_aggregate(query.region))
            elif name in self.providers:
                chain.append(self.providers[name])
            else:
                logger.warning("news_chain_unknown_provider", provider=name, region=query.region)
        return chain

    def _rss_aggregate(self, scope: str) -> RssAggregateProvider:
        return RssAggregateProvider(self.settings, scope, self.registry.entries(scope))

    async def _run_chain(self, chain: list[NewsProvider], query: NewsQuery) -> ProviderResult:
        client = self.client or await get_http_client()
        attempts: list[str] = []
        for position, provider in enumerate(chain, start=1):
            try:
                result = await provider.fetch(client, query)
            except ConfigurationError as exc:
                logger.info("provider_not_configured", position=position, **exc.as_log_context())
                attempts.append(str(exc))
                continue
            except ProviderError as exc:
                logger.warning("provider_attempt_failed", position=position, **exc.as_log_context())
                attempts.append(str(exc))
                continue
            except Exception as exc:
                logger.exception(
                    "provider_attempt_crashed",
                    position=position,
                    provider=provider.name,
                    error=str(exc),
                )
                attempts.append(f"{provider.name}: {type(exc).__name__} - {exc}")
                continue

            if not result.articles:
                logger.info("provider_returned_nothing", position=position, provider=provider.name)
                attempts.append(f"{provider.name}: no articles")
                continue

            logger.info(
                "provider_attempt_succeeded",
                position=position,
                provider=provider.name,
                articles=len(result.articles),
            )
            return result
        raise AggregationExhausted(attempts)

    def _led(self) -> LedNewsProvider:
        provider = self.providers.get("led")
        if isinstance(provider, LedNewsProvider):
            return provider
        return LedNewsProvider(self.settings)

    async def get_article(self, article_id: str) -> Article | None:
        led = self._led()
        client = self.client or await get_http_client()

        item: dict[str, Any] | None = None
        try:
            item = await led.fetch_article(client, article_id)
        except ProviderError as exc:
            logger.warning("article_direct_lookup_failed", article_id=article_id, **exc.as_log_context())

        if item is None:
            try:
                items = await led.fetch_list(client)
            except ProviderError as exc:
                logger.warning("article_list_lookup_failed", article_id=article_id, **exc.as_log_context())
                return None
            item = next(
                (
                    candidate
                    for candidate in items
                    if isinstance(candidate, dict)
                    and article_id in (str(candidate.get("documentId")), str(candidate.get("id")))
                ),
                None,
            )
            if item is None:
                return None

        article = normalize("led", item, media_base_url=self.settings.led_media_base_url)
        if not article.content:
            article.content = [
                ContentBlock(
                    type="paragraph",
                    children=[ContentChild(text=article.description or "No content available")],
                )
            ]
        return article

    async def list_sources(self) -> SourceCatalog:
        led = self._led()
        client = self.client or await get_http_client()
        tenants, categories = await asyncio.gather(
            led.fetch_tenants(client),
            led.fetch_categories(client),
            return_exceptions=True,
        )
        catalog = SourceCatalog(
            rss={scope: self.registry.available_sources(scope) for scope in SCOPES}
        )
        for label, result in (("tenants", tenants), ("categories", categories)):
            if isinstance(result, list):
                setattr(catalog, label, result)
            elif isinstance(result, ProviderError):
                logger.warning("sources_lookup_failed", lookup=label, **result.as_log_context())
            else:
                raise result
        return catalog

    async def check_feeds(self, scope: Region | None = None) -> list[FeedHealth]:
        client = self.client or await get_http_client()
        scopes = (scope,) if scope else SCOPES
        entries = [entry for name in scopes for entry in self.registry.entries(name)]
        reports = await asyncio.gather(
            *(check_feed(client, entry, self.settings.rss_timeout) for entry in entries)
        )
        failed = [report.source_id for report in reports if not report.ok]
        logger.info("rss_health_checked", checked=len(reports), failed=failed)
        return list(reports)
