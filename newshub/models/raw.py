"""Raw payload shapes returned by each upstream, before normalization.

Upstream payloads are loosely typed, so items are kept as plain mappings and
described here with ``TypedDict``; the normalizer probes them field by field.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, TypedDict

ProviderTag = Literal["newsapi", "gnews", "led", "rss"]


class NewsApiSource(TypedDict, total=False):
    id: str | None
    name: str | None


class NewsApiItem(TypedDict, total=False):
    source: NewsApiSource
    author: str | None
    title: str | None
    description: str | None
    url: str | None
    urlToImage: str | None
    publishedAt: str | None
    content: str | None


class GNewsSource(TypedDict, total=False):
    id: str | None
    name: str | None
    url: str | None


class GNewsItem(TypedDict, total=False):
    id: str | None
    title: str | None
    description: str | None
    content: str | None
    url: str | None
    image: str | None
    publishedAt: str | None
    lang: str | None
    source: GNewsSource


class LedMedia(TypedDict, total=False):
    url: str | None
    formats: dict[str, dict[str, Any]]


class LedEntity(TypedDict, total=False):
    id: int
    documentId: str | None
    name: str | None
    Name: str | None
    slug: str | None


# The CMS has shipped both capitalised and lower-case field names over time.
LedNewsItem = TypedDict(
    "LedNewsItem",
    {
        "id": int,
        "documentId": str,
        "Title": str,
        "title": str,
        "name": str,
        "slug": str,
        "Date": str,
        "createdAt": str,
        "publishedAt": str,
        "Summary": str,
        "summary": str,
        "description": str,
        "Content": Any,
        "content": Any,
        "body": Any,
        "Link": str,
        "link": str,
        "Url": str,
        "url": str,
        "SourceLink": str,
        "sourceLink": str,
        "permalink": str,
        "Image": LedMedia,
        "image": LedMedia,
        "cover": LedMedia,
        "thumbnail": LedMedia,
        "tenant": LedEntity,
        "Tenant": LedEntity,
        "category": LedEntity,
        "Category": LedEntity,
    },
    total=False,
)


class RssItem(TypedDict, total=False):
    title: str
    link: str
    pub_date: str
    image: str | None
    source: str
    source_id: str
    description: str
    author: str
    categories: list[str]
    content: str | None
    guid: str | None


@dataclass(slots=True)
class RawResponse:
    tag: ProviderTag
    items: list[Any] = field(default_factory=list)
    total: int | None = None
