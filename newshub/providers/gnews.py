from __future__ import annotations

from typing import Any

import httpx

from ..config import Settings
from ..errors import ConfigurationError
from ..models.news import NewsQuery
from ..models.raw import RawResponse
from .base import NewsProvider, to_int


class GNewsProvider(NewsProvider):
    tag = "gnews"

    def __init__(self, settings: Settings) -> None:
        super().__init__("gnews", settings, settings.gnews_timeout)

    def build_request(self, query: NewsQuery) -> tuple[str, dict[str, Any]]:
        params: dict[str, Any] = {"lang": self.settings.default_language}
        if query.query:
            path = "/search"
            params["q"] = query.query
            if query.date_gt:
                params["from"] = query.date_gt
        else:
            path = "/top-headlines"
            params["category"] = "general"
        if query.region == "local":
            params["country"] = self.settings.local_country
        if query.page_size:
            params["max"] = query.page_size
        if query.page:
            params["page"] = query.page
        return f"{self.settings.gnews_base_url.rstrip('/')}{path}", params

    async def fetch_raw(self, client: httpx.AsyncClient, query: NewsQuery) -> RawResponse:
        api_key = self.settings.gnews_api_key
        if not api_key:
            raise ConfigurationError(self.name, "GNEWS_API_KEY is not configured")
        url, params = self.build_request(query)
        response = await client.get(
            url,
            params={**params, "apikey": api_key},
            headers={"Accept": "application/json"},
            timeout=self.timeout,
        )
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict) or not isinstance(payload.get("articles"), list):
            raise ValueError("GNews payload has no articles list")
        return RawResponse(
            tag="gnews",
            items=payload["articles"],
            total=to_int(payload.get("totalArticles")),
        )
