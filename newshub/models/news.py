from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Region = Literal["local", "global"]
ResponseStatus = Literal["ok", "error"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContentChild(CamelModel):
    text: str = ""


class ContentBlock(CamelModel):
    type: str = Field("paragraph", description="Rich-text block type")
    children: list[ContentChild] = Field(default_factory=list)


class ArticleSource(CamelModel):
    id: str | None = Field(default=None, description="Provider or tenant identifier")
    name: str = Field(description="Human readable publisher label")


class Article(CamelModel):
    id: str = Field(description="Stable identifier (provider id or article URL)")
    title: str = Field(description="Article headline")
    description: str | None = Field(default=None, description="Short teaser or dek")
    url: str | None = Field(default=None, description="External source URL")
    permalink: str = Field(description="Internal route path for the article")
    image_url: str | None = Field(default=None, description="Absolute image URL")
    published_at: datetime = Field(description="Publication timestamp in UTC")
    content: str | list[ContentBlock] | None = Field(
        default=None, description="Full body as plain text or rich-text blocks"
    )
    source: ArticleSource
    category: str | None = None


class NewsResponse(CamelModel):
    status: ResponseStatus = "ok"
    total_results: int = Field(0, ge=0)
    articles: list[Article] = Field(default_factory=list)
    source: str = Field(description="Provenance tag of whatever satisfied the request")
    message: str | None = None


class CacheEntry(CamelModel):
    model_config = ConfigDict(frozen=True)

    response: NewsResponse
    cached_at: datetime
    expires_at: datetime


class NewsQuery(CamelModel):
    region: Region = "global"
    source: str | None = None
    tenant_id: str | None = None
    category_id: str | None = None
    query: str | None = None
    date_gt: str | None = None
    page: int | None = Field(default=None, ge=1)
    page_size: int | None = Field(default=None, ge=1, le=100)

    @field_validator("source", "tenant_id", "category_id", "query", "date_gt", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("region", mode="before")
    @classmethod
    def _lower_region(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("source")
    @classmethod
    def _lower_source(cls, value: str | None) -> str | None:
        return value.lower() if value else value

    @property
    def is_specific(self) -> bool:
        return bool(self.source or self.tenant_id or self.category_id)


class SourceOption(CamelModel):
    id: str
    name: str


class SourceCatalog(CamelModel):
    tenants: list[dict[str, Any]] = Field(default_factory=list)
    categories: list[dict[str, Any]] = Field(default_factory=list)
    rss: dict[str, list[SourceOption]] = Field(default_factory=dict)


class FeedHealth(CamelModel):
    scope: Region
    source_id: str
    url: str
    ok: bool
    status_code: int | None = None
    error: str | None = None
