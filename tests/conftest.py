from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from newshub.config import Settings
from newshub.models.news import Article, ArticleSource
from newshub.models.raw import RawResponse
from newshub.providers import NewsProvider, ProviderResult


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 5, 20, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def make_article(article_id: str, source_name: str = "Test Source") -> Article:
    return Article(
        id=article_id,
        title=f"Headline {article_id}",
        permalink=f"/article/{article_id}",
        published_at=datetime(2024, 5, 20, 9, 0, tzinfo=timezone.utc),
        source=ArticleSource(name=source_name),
    )


class StubProvider(NewsProvider):
    """Provider double that records the order it was invoked in."""

    tag = "newsapi"

    def __init__(
        self,
        name: str,
        calls: list[str],
        *,
        articles: list[Article] | None = None,
        error: Exception | None = None,
    ) -> None:
        super().__init__(name, Settings(), timeout=1.0)
        self.calls = calls
        self.articles = articles or []
        self.error = error

    async def fetch_raw(self, client, query) -> RawResponse:
        return RawResponse(tag="newsapi", items=[])

    async def fetch(self, client, query) -> ProviderResult:
        self.calls.append(self.name)
        if self.error is not None:
            raise self.error
        return ProviderResult(
            provider=self.name,
            articles=list(self.articles),
            total_results=len(self.articles),
        )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        news_api_key="news-key",
        gnews_api_key="gnews-key",
        led_api_base_url="https://cms.test/api",
        led_media_base_url="https://cms.test",
    )
