from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import Any, ClassVar, TypeVar

import httpx

from ..config import Settings
from ..errors import ProviderError, ProviderErrorKind
from ..models.news import Article, NewsQuery
from ..models.raw import ProviderTag, RawResponse
from ..normalize import normalize_many

T = TypeVar("T")


@dataclass(slots=True)
class ProviderResult:
    provider: str
    articles: list[Article] = field(default_factory=list)
    total_results: int = 0


class NewsProvider(ABC):
    """One upstream. ``fetch`` either returns normalized articles or raises ``ProviderError``.

    Clients never retry; falling back to another provider is the caller's job.
    """

    tag: ClassVar[ProviderTag]

    def __init__(self, name: str, settings: Settings, timeout: float) -> None:
        self.name = name
        self.settings = settings
        self.timeout = timeout

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name} timeout={self.timeout:g}s>"

    @abstractmethod
    async def fetch_raw(self, client: httpx.AsyncClient, query: NewsQuery) -> RawResponse:
        """Fetch one page of raw items from the upstream."""

    async def fetch(self, client: httpx.AsyncClient, query: NewsQuery) -> ProviderResult:
        raw = await self.call(self.fetch_raw(client, query))
        return self.to_result(raw)

    def to_result(self, raw: RawResponse) -> ProviderResult:
        articles = normalize_many(
            raw.tag, raw.items, media_base_url=self.settings.led_media_base_url
        )
        total = raw.total if raw.total is not None else len(articles)
        return ProviderResult(
            provider=self.name,
            articles=articles,
            total_results=max(total, len(articles)),
        )

    async def call(self, awaitable: Awaitable[T]) -> T:
        """Await one upstream call under this provider's timeout.

        On timeout the pending request is cancelled. Every failure comes out
        as a ``ProviderError`` tagged with this provider's name.
        """
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except ProviderError:
            raise
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise ProviderError(
                self.name,
                ProviderErrorKind.TIMEOUT,
                f"No response within {self.timeout:g}s",
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise ProviderError(
                self.name,
                ProviderErrorKind.HTTP,
                describe_response(exc.response),
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(
                self.name, ProviderErrorKind.HTTP, str(exc) or type(exc).__name__
            ) from exc
        except ValueError as exc:
            raise ProviderError(self.name, ProviderErrorKind.PARSE, str(exc)) from exc


def describe_response(response: httpx.Response) -> str:
    # Never echo the request URL: some upstreams take the key as a query param.
    detail = ""
    try:
        payload = response.json()
    except ValueError:
        detail = response.text[:200].strip()
    else:
        if isinstance(payload, dict):
            detail = str(
                payload.get("message")
                or payload.get("error")
                or payload.get("errors")
                or ""
            )
    reason = response.reason_phrase or "HTTP error"
    return f"{reason} - {detail}" if detail else reason


def to_int(value: Any) -> int | None:
    try:
        if value is None or value == "":
            return None
        return int(value)
    except (TypeError, ValueError):
        return None
