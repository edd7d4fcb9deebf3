import asyncio

import httpx
import pytest
import respx

from newshub.config import Settings
from newshub.errors import ConfigurationError, ProviderError, ProviderErrorKind
from newshub.feeds import FeedEntry
from newshub.models.news import NewsQuery
from newshub.models.raw import RawResponse
from newshub.providers import (
    GNewsProvider,
    LedNewsProvider,
    NewsApiProvider,
    NewsProvider,
    RssAggregateProvider,
    RssFeedProvider,
)

FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>{name}</title>
    <item>
      <title>{name} election coverage</title>
      <link>https://{host}/1</link>
      <pubDate>Mon, 20 May 2024 15:20:00 +0000</pubDate>
      <description>Polls open across the country.</description>
    </item>
    <item>
      <title>{name} weather</title>
      <link>https://{host}/2</link>
      <description>Sunny spells.</description>
    </item>
  </channel>
</rss>
"""


def _feed(name: str, host: str) -> str:
    return FEED.format(name=name, host=host)


@pytest.mark.asyncio
async def test_newsapi_requires_key() -> None:
    provider = NewsApiProvider(Settings(news_api_key=None))
    async with httpx.AsyncClient() as client:
        with pytest.raises(ConfigurationError) as excinfo:
            await provider.fetch(client, NewsQuery())

    assert excinfo.value.kind is ProviderErrorKind.CONFIGURATION
    assert excinfo.value.provider == "newsapi"


@pytest.mark.asyncio
async def test_newsapi_top_headlines(settings) -> None:
    payload = {
        "status": "ok",
        "totalResults": 37,
        "articles": [
            {
                "source": {"id": "bbc-news", "name": "BBC News"},
                "title": "Rain expected",
                "url": "https://www.bbc.co.uk/news/1",
                "publishedAt": "2024-05-20T08:30:00Z",
            }
        ],
    }
    provider = NewsApiProvider(settings)
    async with httpx.AsyncClient() as client:
        with respx.mock(assert_all_called=True) as mock:
            route = mock.get("https://newsapi.org/v2/top-headlines").respond(200, json=payload)
            result = await provider.fetch(client, NewsQuery(page_size=5))

    request = route.calls.last.request
    assert request.url.params["category"] == "general"
    assert request.url.params["pageSize"] == "5"
    assert request.headers["X-Api-Key"] == "news-key"
    assert "apiKey" not in request.url.params
    assert result.provider == "newsapi"
    assert result.total_results == 37
    assert result.articles[0].title == "Rain expected"


@pytest.mark.asyncio
async def test_newsapi_query_uses_everything_endpoint(settings) -> None:
    provider = NewsApiProvider(settings)
    async with httpx.AsyncClient() as client:
        with respx.mock(assert_all_called=True) as mock:
            route = mock.get("https://newsapi.org/v2/everything").respond(
                200, json={"status": "ok", "totalResults": 0, "articles": []}
            )
            result = await provider.fetch(
                client, NewsQuery(query="ethiopia", date_gt="2024-05-01")
            )

    params = route.calls.last.request.url.params
    assert params["q"] == "ethiopia"
    assert params["from"] == "2024-05-01"
    assert params["sortBy"] == "publishedAt"
    assert result.articles == []


def test_newsapi_local_region_filters_by_country(settings) -> None:
    provider = NewsApiProvider(settings)
    url, params = provider.build_request(NewsQuery(region="local"))

    assert url == "https://newsapi.org/v2/top-headlines"
    assert params == {"country": "et"}


@pytest.mark.asyncio
async def test_newsapi_http_error_is_tagged(settings) -> None:
    provider = NewsApiProvider(settings)
    async with httpx.AsyncClient() as client:
        with respx.mock(assert_all_called=True) as mock:
            mock.get("https://newsapi.org/v2/top-headlines").respond(
                500, json={"status": "error", "message": "upstream exploded"}
            )
            with pytest.raises(ProviderError) as excinfo:
                await provider.fetch(client, NewsQuery())

    error = excinfo.value
    assert error.kind is ProviderErrorKind.HTTP
    assert error.status_code == 500
    assert "upstream exploded" in error.message
    assert "news-key" not in str(error)


@pytest.mark.asyncio
async def test_newsapi_error_payload_is_parse_failure(settings) -> None:
    provider = NewsApiProvider(settings)
    async with httpx.AsyncClient() as client:
        with respx.mock(assert_all_called=True) as mock:
            mock.get("https://newsapi.org/v2/top-headlines").respond(
                200, json={"status": "error", "message": "rateLimited"}
            )
            with pytest.raises(ProviderError) as excinfo:
                await provider.fetch(client, NewsQuery())

    assert excinfo.value.kind is ProviderErrorKind.PARSE


@pytest.mark.asyncio
async def test_gnews_timeout_is_tagged(settings) -> None:
    provider = GNewsProvider(settings)
    async with httpx.AsyncClient() as client:
        with respx.mock(assert_all_called=True) as mock:
            mock.get("https://gnews.io/api/v4/top-headlines").mock(
                side_effect=httpx.ReadTimeout("timed out")
            )
            with pytest.raises(ProviderError) as excinfo:
                await provider.fetch(client, NewsQuery())

    assert excinfo.value.kind is ProviderErrorKind.TIMEOUT
    assert excinfo.value.provider == "gnews"


@pytest.mark.asyncio
async def test_gnews_malformed_payload(settings) -> None:
    provider = GNewsProvider(settings)
    async with httpx.AsyncClient() as client:
        with respx.mock(assert_all_called=True) as mock:
            mock.get("https://gnews.io/api/v4/search").respond(200, text="<html>oops</html>")
            with pytest.raises(ProviderError) as excinfo:
                await provider.fetch(client, NewsQuery(query="markets"))

    assert excinfo.value.kind is ProviderErrorKind.PARSE


@pytest.mark.asyncio
async def test_gnews_search_request(settings) -> None:
    payload = {
        "totalArticles": 2,
        "articles": [
            {"title": "One", "url": "https://a.test/1"},
            {"title": "Two", "url": "https://a.test/2"},
        ],
    }
    provider = GNewsProvider(settings)
    async with httpx.AsyncClient() as client:
        with respx.mock(assert_all_called=True) as mock:
            route = mock.get("https://gnews.io/api/v4/search").respond(200, json=payload)
            result = await provider.fetch(
                client, NewsQuery(region="local", query="addis", page=2)
            )

    params = route.calls.last.request.url.params
    assert params["q"] == "addis"
    assert params["country"] == "et"
    assert params["page"] == "2"
    assert params["apikey"] == "gnews-key"
    assert [a.title for a in result.articles] == ["One", "Two"]


@pytest.mark.asyncio
async def test_led_reads_strapi_envelope(settings) -> None:
    payload = {
        "data": [
            {"id": 1, "documentId": "doc-1", "Title": "First"},
            {"id": 2, "documentId": "doc-2", "Title": "Second"},
        ],
        "meta": {"pagination": {"page": 1, "pageSize": 2, "total": 14}},
    }
    provider = LedNewsProvider(settings)
    async with httpx.AsyncClient() as client:
        with respx.mock(assert_all_called=True) as mock:
            route = mock.get("https://cms.test/api/newsses").respond(200, json=payload)
            result = await provider.fetch(
                client, NewsQuery(query="budget", date_gt="2024-05-01")
            )

    params = route.calls.last.request.url.params
    assert params["filters[Title][$containsi]"] == "budget"
    assert params["filters[Date][$gt]"] == "2024-05-01"
    assert result.provider == "led"
    assert result.total_results == 14
    assert [a.id for a in result.articles] == ["doc-1", "doc-2"]


@pytest.mark.asyncio
async def test_led_tenant_provider_accepts_bare_list(settings) -> None:
    provider = LedNewsProvider(settings, tenant_id="7")
    async with httpx.AsyncClient() as client:
        with respx.mock(assert_all_called=True) as mock:
            mock.get("https://cms.test/api/tenant/7/news").respond(
                200, json=[{"id": 9, "Title": "Tenant story"}]
            )
            result = await provider.fetch(client, NewsQuery(tenant_id="7"))

    assert provider.name == "tenant:7"
    assert result.provider == "tenant:7"
    assert result.total_results == 1
    assert result.articles[0].title == "Tenant story"


def test_led_category_path(settings) -> None:
    provider = LedNewsProvider(settings, category_id="sports")
    assert provider.name == "category:sports"
    assert provider.build_path() == "/news/category/sports"


@pytest.mark.asyncio
async def test_led_without_base_url_is_not_configured() -> None:
    provider = LedNewsProvider(Settings(led_api_base_url=None))
    async with httpx.AsyncClient() as client:
        with pytest.raises(ConfigurationError):
            await provider.fetch(client, NewsQuery())


@pytest.mark.asyncio
async def test_slow_provider_times_out() -> None:
    class SlowProvider(NewsProvider):
        tag = "newsapi"

        async def fetch_raw(self, client, query) -> RawResponse:
            await asyncio.sleep(5)
            return RawResponse(tag="newsapi", items=[])

    provider = SlowProvider("slow", Settings(), timeout=0.05)
    async with httpx.AsyncClient() as client:
        with pytest.raises(ProviderError) as excinfo:
            await provider.fetch(client, NewsQuery())

    assert excinfo.value.kind is ProviderErrorKind.TIMEOUT
    assert excinfo.value.provider == "slow"


@pytest.mark.asyncio
async def test_rss_feed_falls_back_to_alternate_url(settings) -> None:
    entry = FeedEntry(
        "global",
        "cnn",
        "CNN",
        "https://feeds.test/cnn/primary.rss",
        ("https://feeds.test/cnn/alternate.rss",),
    )
    provider = RssFeedProvider(settings, entry)
    async with httpx.AsyncClient() as client:
        with respx.mock(assert_all_called=True) as mock:
            mock.get("https://feeds.test/cnn/primary.rss").respond(503)
            mock.get("https://feeds.test/cnn/alternate.rss").respond(
                200, text=_feed("CNN", "cnn.test")
            )
            result = await provider.fetch(client, NewsQuery(query="ELECTION"))

    assert result.provider == "rss:cnn"
    assert [a.title for a in result.articles] == ["CNN election coverage"]
    assert result.articles[0].source.name == "CNN"
    assert result.articles[0].source.id == "cnn"


@pytest.mark.asyncio
async def test_rss_feed_raises_last_error_when_every_url_fails(settings) -> None:
    entry = FeedEntry(
        "local", "ena", "Ethiopian News Agency", "https://feeds.test/ena/feed", ("https://feeds.test/ena/rss",)
    )
    provider = RssFeedProvider(settings, entry)
    async with httpx.AsyncClient() as client:
        with respx.mock(assert_all_called=True) as mock:
            mock.get("https://feeds.test/ena/feed").respond(500)
            mock.get("https://feeds.test/ena/rss").respond(200, text="<html>not a feed</html>")
            with pytest.raises(ProviderError) as excinfo:
                await provider.fetch(client, NewsQuery())

    assert excinfo.value.kind is ProviderErrorKind.PARSE


@pytest.mark.asyncio
async def test_rss_aggregate_skips_failed_feeds(settings) -> None:
    entries = [
        FeedEntry("global", "bbc", "BBC News", "https://feeds.test/bbc.xml"),
        FeedEntry("global", "dw", "Deutsche Welle", "https://feeds.test/dw.xml"),
    ]
    provider = RssAggregateProvider(settings, "global", entries)
    async with httpx.AsyncClient() as client:
        with respx.mock(assert_all_called=True) as mock:
            mock.get("https://feeds.test/bbc.xml").respond(200, text=_feed("BBC News", "bbc.test"))
            mock.get("https://feeds.test/dw.xml").mock(side_effect=httpx.ConnectError("refused"))
            result = await provider.fetch(client, NewsQuery())

    assert result.provider == "rss:global"
    assert result.total_results == 2
    assert {a.source.name for a in result.articles} == {"BBC News"}


@pytest.mark.asyncio
async def test_rss_aggregate_fails_when_no_feed_answers(settings) -> None:
    entries = [FeedEntry("local", "fanabc", "Fana BC", "https://feeds.test/fana.xml")]
    provider = RssAggregateProvider(settings, "local", entries)
    async with httpx.AsyncClient() as client:
        with respx.mock(assert_all_called=True) as mock:
            mock.get("https://feeds.test/fana.xml").respond(404)
            with pytest.raises(ProviderError) as excinfo:
                await provider.fetch(client, NewsQuery(region="local"))

    assert excinfo.value.provider == "rss:local"
    assert "All 1 local feeds failed" in str(excinfo.value)


def test_provider_without_fetch_raw_cannot_be_built() -> None:
    class Incomplete(NewsProvider):
        tag = "newsapi"

    with pytest.raises(TypeError):
        Incomplete("incomplete", Settings(), timeout=1.0)
