"""Map raw provider items onto :class:`Article`.

Every mapper is pure and total: a missing or malformed field falls back to a
default instead of raising, so one bad item never sinks a batch. Where several
raw fields can feed the same article field, the candidates are listed in
priority order and the first non-empty value wins.
"""

from __future__ import annotations

import hashlib
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote

from dateutil import parser as date_parser

from .feeds.registry import format_source_name
from .models.news import Article, ArticleSource, ContentBlock, ContentChild
from .models.raw import ProviderTag

DEFAULT_MEDIA_BASE_URL = "http://led.weytech.et:1338"
UNTITLED = "Untitled"

PROVIDER_LABELS: dict[str, str] = {
    "newsapi": "NewsAPI",
    "gnews": "GNews",
    "led": "News Source",
    "rss": "RSS Feed",
}

NEWSAPI_TITLE = ("title",)
NEWSAPI_DESCRIPTION = ("description", "content")
NEWSAPI_CONTENT = ("content",)
NEWSAPI_URL = ("url",)
NEWSAPI_IMAGE = ("urlToImage",)
NEWSAPI_PUBLISHED = ("publishedAt",)

GNEWS_ID = ("id",)
GNEWS_TITLE = ("title",)
GNEWS_DESCRIPTION = ("description", "content")
GNEWS_CONTENT = ("content",)
GNEWS_URL = ("url",)
GNEWS_IMAGE = ("image",)
GNEWS_PUBLISHED = ("publishedAt",)

LED_ID = ("documentId", "id")
LED_TITLE = ("Title", "title", "name")
LED_DESCRIPTION = ("Summary", "summary", "description", "Content", "content")
LED_CONTENT = ("Content", "content", "body")
LED_URL = ("Link", "link", "Url", "url", "SourceLink", "sourceLink", "permalink")
LED_PUBLISHED = ("Date", "publishedAt", "createdAt")
LED_IMAGE = ("Image.url", "image.url", "cover.url", "thumbnail.url")
LED_IMAGE_FORMATS = ("Image.formats", "image.formats")
LED_SLUG = ("slug", "documentId")
LED_TENANT = ("tenant", "Tenant")
LED_CATEGORY = ("category", "Category")
LED_ENTITY_NAME = ("name", "Name")

RSS_TITLE = ("title",)
RSS_DESCRIPTION = ("description",)
RSS_PUBLISHED = ("pub_date",)


def dig(item: Any, path: str) -> Any:
    """Follow a dotted path through nested mappings; ``None`` when absent."""
    value = item
    for part in path.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(part)
    return value


def as_text(value: Any) -> str | None:
    if isinstance(value, str):
        text = value.strip()
        return text or None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def first_text(item: Any, fields: Iterable[str]) -> str | None:
    for field in fields:
        text = as_text(dig(item, field))
        if text:
            return text
    return None


def first_value(item: Any, fields: Iterable[str]) -> Any:
    for field in fields:
        value = dig(item, field)
        if value not in (None, "", [], {}):
            return value
    return None


def parse_timestamp(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        parsed = value
    else:
        text = as_text(value)
        if not text:
            return None
        try:
            parsed = date_parser.parse(text)
        except (ValueError, TypeError, OverflowError):
            return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None


def first_timestamp(item: Any, fields: Iterable[str], now: datetime | None) -> datetime:
    for field in fields:
        parsed = parse_timestamp(dig(item, field))
        if parsed is not None:
            return parsed
    return now or datetime.now(timezone.utc)


def _leaf_texts(node: Any) -> list[str]:
    if isinstance(node, Mapping):
        texts: list[str] = []
        if isinstance(node.get("text"), str):
            texts.append(node["text"])
        children = node.get("children")
        if isinstance(children, Sequence) and not isinstance(children, str):
            for child in children:
                texts.extend(_leaf_texts(child))
        return texts
    if isinstance(node, Sequence) and not isinstance(node, str):
        return [text for child in node for text in _leaf_texts(child)]
    return []


def flatten_blocks(blocks: Any) -> str | None:
    """Concatenate the leaf text of each rich-text block, one paragraph per block."""
    if not isinstance(blocks, Sequence) or isinstance(blocks, str):
        return None
    paragraphs = ["".join(_leaf_texts(block)).strip() for block in blocks]
    text = "\n\n".join(paragraph for paragraph in paragraphs if paragraph)
    return text or None


def to_content(value: Any) -> str | list[ContentBlock] | None:
    text = as_text(value)
    if text:
        return text
    if not isinstance(value, Sequence) or isinstance(value, str):
        return None
    blocks = []
    for block in value:
        if not isinstance(block, Mapping):
            continue
        block_type = as_text(block.get("type")) or "paragraph"
        children = [ContentChild(text=text) for text in _leaf_texts(block.get("children"))]
        blocks.append(ContentBlock(type=block_type, children=children))
    return blocks or None


def absolute_url(url: str | None, base_url: str) -> str | None:
    if not url:
        return None
    if url.startswith(("http://", "https://")):
        return url
    if url.startswith("//"):
        return f"https:{url}"
    return f"{base_url.rstrip('/')}/{url.lstrip('/')}"


def generated_id(tag: str, *parts: Any) -> str:
    seed = "|".join(str(part) for part in parts if part)
    return f"{tag}-{hashlib.sha1(seed.encode('utf-8')).hexdigest()[:16]}"


def permalink_for(slug: str) -> str:
    return f"/article/{quote(slug, safe='')}"


def _newsapi_like(
    tag: ProviderTag,
    item: Mapping[str, Any],
    fields: dict[str, tuple[str, ...]],
    now: datetime | None,
) -> Article:
    url = first_text(item, fields["url"])
    title = first_text(item, fields["title"]) or UNTITLED
    article_id = first_text(item, fields["id"]) or url or generated_id(tag, title)
    return Article(
        id=article_id,
        title=title,
        description=first_text(item, fields["description"]),
        url=url,
        permalink=permalink_for(article_id),
        image_url=first_text(item, fields["image"]),
        published_at=first_timestamp(item, fields["published"], now),
        content=first_text(item, fields["content"]),
        source=ArticleSource(
            id=first_text(item, ("source.id",)),
            name=first_text(item, ("source.name",)) or PROVIDER_LABELS[tag],
        ),
    )


def normalize_newsapi_item(
    item: Mapping[str, Any], *, now: datetime | None = None, **_: Any
) -> Article:
    return _newsapi_like(
        "newsapi",
        item,
        {
            "id": (),
            "url": NEWSAPI_URL,
            "title": NEWSAPI_TITLE,
            "description": NEWSAPI_DESCRIPTION,
            "image": NEWSAPI_IMAGE,
            "published": NEWSAPI_PUBLISHED,
            "content": NEWSAPI_CONTENT,
        },
        now,
    )


def normalize_gnews_item(
    item: Mapping[str, Any], *, now: datetime | None = None, **_: Any
) -> Article:
    return _newsapi_like(
        "gnews",
        item,
        {
            "id": GNEWS_ID,
            "url": GNEWS_URL,
            "title": GNEWS_TITLE,
            "description": GNEWS_DESCRIPTION,
            "image": GNEWS_IMAGE,
            "published": GNEWS_PUBLISHED,
            "content": GNEWS_CONTENT,
        },
        now,
    )


def led_image(item: Mapping[str, Any], media_base_url: str) -> str | None:
    direct = first_text(item, LED_IMAGE)
    if direct:
        return absolute_url(direct, media_base_url)
    for path in LED_IMAGE_FORMATS:
        formats = dig(item, path)
        if not isinstance(formats, Mapping):
            continue
        for variant in formats.values():
            url = as_text(dig(variant, "url"))
            if url:
                return absolute_url(url, media_base_url)
    return None


def _led_entity(item: Mapping[str, Any], fields: Iterable[str]) -> Mapping[str, Any]:
    for field in fields:
        entity = item.get(field)
        if isinstance(entity, Mapping):
            return entity
    return {}


def normalize_led_item(
    item: Mapping[str, Any],
    *,
    media_base_url: str = DEFAULT_MEDIA_BASE_URL,
    now: datetime | None = None,
    **_: Any,
) -> Article:
    native_id = first_text(item, LED_ID)
    numeric_id = as_text(item.get("id"))
    title = first_text(item, LED_TITLE)
    if not title:
        title = f"News Item #{numeric_id}" if numeric_id else UNTITLED
    article_id = native_id or generated_id("led", title)

    description = first_text(item, LED_DESCRIPTION)
    if not description:
        description = flatten_blocks(first_value(item, LED_CONTENT))

    slug = first_text(item, LED_SLUG) or (f"news-{numeric_id}" if numeric_id else article_id)

    tenant = _led_entity(item, LED_TENANT)
    tenant_id = first_text(tenant, ("documentId", "id"))
    category = _led_entity(item, LED_CATEGORY)

    return Article(
        id=article_id,
        title=title,
        description=description,
        url=first_text(item, LED_URL),
        permalink=permalink_for(slug),
        image_url=led_image(item, media_base_url),
        published_at=first_timestamp(item, LED_PUBLISHED, now),
        content=to_content(first_value(item, LED_CONTENT)),
        source=ArticleSource(
            id=tenant_id,
            name=first_text(tenant, LED_ENTITY_NAME) or PROVIDER_LABELS["led"],
        ),
        category=first_text(category, LED_ENTITY_NAME),
    )


def normalize_rss_item(
    item: Mapping[str, Any], *, now: datetime | None = None, **_: Any
) -> Article:
    link = first_text(item, ("link",))
    url = link if link and link != "#" else None
    title = first_text(item, RSS_TITLE) or "No title"
    guid = first_text(item, ("guid",))
    article_id = guid or url or generated_id("rss", title, first_text(item, ("source_id",)))
    source_id = first_text(item, ("source_id",))
    source_name = first_text(item, ("source",))
    if not source_name:
        source_name = format_source_name(source_id) if source_id else PROVIDER_LABELS["rss"]
    categories = item.get("categories")
    category = None
    if isinstance(categories, Sequence) and not isinstance(categories, str):
        category = next((text for text in map(as_text, categories) if text), None)
    return Article(
        id=article_id,
        title=title,
        description=first_text(item, RSS_DESCRIPTION),
        url=url,
        permalink=permalink_for(article_id),
        image_url=first_text(item, ("image",)),
        published_at=first_timestamp(item, RSS_PUBLISHED, now),
        content=first_text(item, ("content",)),
        source=ArticleSource(id=source_id, name=source_name),
        category=category,
    )


_MAPPERS: dict[str, Callable[..., Article]] = {
    "newsapi": normalize_newsapi_item,
    "gnews": normalize_gnews_item,
    "led": normalize_led_item,
    "rss": normalize_rss_item,
}


def normalize(
    tag: ProviderTag,
    raw_item: Any,
    *,
    media_base_url: str = DEFAULT_MEDIA_BASE_URL,
    now: datetime | None = None,
) -> Article:
    try:
        mapper = _MAPPERS[tag]
    except KeyError:
        raise ValueError(f"No normalizer registered for provider '{tag}'") from None
    item = raw_item if isinstance(raw_item, Mapping) else {}
    return mapper(item, media_base_url=media_base_url, now=now)


def normalize_many(
    tag: ProviderTag,
    raw_items: Iterable[Any],
    *,
    media_base_url: str = DEFAULT_MEDIA_BASE_URL,
    now: datetime | None = None,
) -> list[Article]:
    return [
        normalize(tag, raw_item, media_base_url=media_base_url, now=now)
        for raw_item in raw_items
    ]
