from __future__ import annotations

from typing import Any

import httpx

from ..config import Settings
from ..errors import ConfigurationError
from ..models.news import NewsQuery
from ..models.raw import RawResponse
from .base import NewsProvider, to_int


class NewsApiProvider(NewsProvider):
    """Headlines API (newsapi.org v2)."""

    tag = "newsapi"

    def __init__(self, settings: Settings) -> None:
        super().__init__("newsapi", settings, settings.newsapi_timeout)

    def build_request(self, query: NewsQuery) -> tuple[str, dict[str, Any]]:
        params: dict[str, Any] = {}
        if query.query:
            path = "/everything"
            params["q"] = query.query
            params["sortBy"] = "publishedAt"
            params["language"] = self.settings.default_language
            if query.date_gt:
                params["from"] = query.date_gt
        else:
            path = "/top-headlines"
            if query.region == "local":
                params["country"] = self.settings.local_country
            else:
                params["category"] = "general"
        if query.page_size:
            params["pageSize"] = query.page_size
        if query.page:
            params["page"] = query.page
        return f"{self.settings.news_api_base_url.rstrip('/')}{path}", params

    async def fetch_raw(self, client: httpx.AsyncClient, query: NewsQuery) -> RawResponse:
        api_key = self.settings.news_api_key
        if not api_key:
            raise ConfigurationError(self.name, "NEWS_API_KEY is not configured")
        url, params = self.build_request(query)
        response = await client.get(
            url,
            params=params,
            headers={"X-Api-Key": api_key, "Accept": "application/json"},
            timeout=self.timeout,
        )
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError("NewsAPI returned a non-object payload")
        if payload.get("status") == "error":
            raise ValueError(payload.get("message") or "NewsAPI reported an error")
        articles = payload.get("articles")
        if not isinstance(articles, list):
            raise ValueError("NewsAPI payload has no articles list")
        return RawResponse(tag="newsapi", items=articles, total=to_int(payload.get("totalResults")))
