from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from ..config import Settings
from ..errors import ConfigurationError
from ..models.news import NewsQuery
from ..models.raw import RawResponse
from .base import NewsProvider, to_int


class LedNewsProvider(NewsProvider):
    """Strapi-backed CMS API.

    Without a tenant or category it serves the general news list; with one it
    becomes a source-specific provider named ``tenant:<id>`` or
    ``category:<id>``.
    """

    tag = "led"

    def __init__(
        self,
        settings: Settings,
        *,
        tenant_id: str | None = None,
        category_id: str | None = None,
    ) -> None:
        if tenant_id:
            name = f"tenant:{tenant_id}"
        elif category_id:
            name = f"category:{category_id}"
        else:
            name = "led"
        super().__init__(name, settings, settings.led_timeout)
        self.tenant_id = tenant_id
        self.category_id = category_id

    def _base_url(self) -> str:
        base_url = self.settings.led_api_base_url
        if not base_url:
            raise ConfigurationError(self.name, "LED_API_BASE_URL is not configured")
        return base_url.rstrip("/")

    def build_path(self) -> str:
        if self.tenant_id:
            return f"/tenant/{quote(self.tenant_id, safe='')}/news"
        if self.category_id:
            return f"/news/category/{quote(self.category_id, safe='')}"
        return "/newsses"

    @staticmethod
    def build_params(query: NewsQuery) -> dict[str, Any]:
        params: dict[str, Any] = {}
        if query.date_gt:
            params["filters[Date][$gt]"] = query.date_gt
        if query.query:
            params["filters[Title][$containsi]"] = query.query
        if query.page:
            params["pagination[page]"] = query.page
        if query.page_size:
            params["pagination[pageSize]"] = query.page_size
        return params

    async def _get(self, client: httpx.AsyncClient, path: str, params: dict[str, Any] | None = None) -> Any:
        response = await client.get(
            f"{self._base_url()}{path}",
            params=params,
            headers={"Accept": "application/json"},
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    async def fetch_raw(self, client: httpx.AsyncClient, query: NewsQuery) -> RawResponse:
        payload = await self._get(client, self.build_path(), self.build_params(query))
        if isinstance(payload, list):
            return RawResponse(tag="led", items=payload, total=len(payload))
        if isinstance(payload, dict) and "data" in payload:
            data = payload.get("data")
            items = data if isinstance(data, list) else []
            pagination = (payload.get("meta") or {}).get("pagination") or {}
            return RawResponse(tag="led", items=items, total=to_int(pagination.get("total")))
        raise ValueError("CMS payload has no data list")

    async def fetch_article(self, client: httpx.AsyncClient, article_id: str) -> dict[str, Any] | None:
        if article_id.isdigit():
            payload = await self.call(self._get(client, f"/newsses/{article_id}"))
            item = payload.get("data") if isinstance(payload, dict) else None
        else:
            payload = await self.call(
                self._get(
                    client,
                    "/newsses",
                    {"filters[documentId][$eq]": article_id, "pagination[pageSize]": 1},
                )
            )
            data = payload.get("data") if isinstance(payload, dict) else None
            item = data[0] if isinstance(data, list) and data else None
        return item if isinstance(item, dict) else None

    async def fetch_list(self, client: httpx.AsyncClient) -> list[Any]:
        raw = await self.call(self.fetch_raw(client, NewsQuery()))
        return raw.items

    async def fetch_tenants(self, client: httpx.AsyncClient) -> list[dict[str, Any]]:
        return await self._fetch_entities(client, "/tenants")

    async def fetch_categories(self, client: httpx.AsyncClient) -> list[dict[str, Any]]:
        return await self._fetch_entities(client, "/categories")

    async def _fetch_entities(self, client: httpx.AsyncClient, path: str) -> list[dict[str, Any]]:
        payload = await self.call(self._get(client, path))
        data = payload.get("data") if isinstance(payload, dict) else payload
        if not isinstance(data, list):
            return []
        return [item for item in data if isinstance(item, dict)]
