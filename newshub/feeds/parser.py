"""Turn RSS 2.0, RDF and Atom documents into ``RssItem`` dictionaries."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from bs4 import BeautifulSoup
from dateutil import parser as date_parser

from ..models.raw import RssItem

NO_TITLE = "No title"
NO_LINK = "#"


def parse_feed(
    document: bytes | str,
    *,
    source_id: str,
    source_name: str,
    description_limit: int = 200,
    max_items: int = 50,
    now: datetime | None = None,
) -> list[RssItem]:
    """Parse a feed document.

    Raises ``ValueError`` when the document has no rss, RDF or Atom root.
    """
    soup = BeautifulSoup(document, "xml")
    root = soup.find("rss") or soup.find("RDF") or soup.find("feed")
    if root is None:
        raise ValueError("Document is not an RSS, RDF or Atom feed")

    is_atom = root.name == "feed"
    nodes = root.find_all("entry" if is_atom else "item")
    parsed_at = (now or datetime.now(timezone.utc)).isoformat()

    items: list[RssItem] = []
    for node in nodes[:max_items]:
        if is_atom:
            items.append(_atom_entry(node, source_id, source_name, description_limit, parsed_at))
        else:
            items.append(_rss_item(node, source_id, source_name, description_limit, parsed_at))
    return items


def _rss_item(
    node: Any, source_id: str, source_name: str, limit: int, parsed_at: str
) -> RssItem:
    body = _child_text(node, "content:encoded") or None
    summary = _child_text(node, "description")
    link = _child_text(node, "link") or NO_LINK
    return RssItem(
        title=_child_text(node, "title") or NO_TITLE,
        link=link,
        pub_date=_iso_date(_child_text(node, "pubDate", "dc:date")) or parsed_at,
        image=(
            first_image(body)
            or _enclosure_image(node)
            or _media_image(node)
            or first_image(summary)
        ),
        source=source_name,
        source_id=source_id,
        description=sanitize_description(summary or body, limit),
        author=_child_text(node, "dc:creator", "author"),
        categories=[
            text
            for text in (tag.get_text(strip=True) for tag in node.find_all("category", recursive=False))
            if text
        ],
        content=body,
        guid=_child_text(node, "guid") or (link if link != NO_LINK else None),
    )


def _atom_entry(
    node: Any, source_id: str, source_name: str, limit: int, parsed_at: str
) -> RssItem:
    body = _child_text(node, "content") or None
    summary = _child_text(node, "summary")
    link = _atom_link(node) or NO_LINK
    author_tag = node.find("author", recursive=False)
    author = ""
    if author_tag is not None:
        name_tag = author_tag.find("name")
        author = (name_tag or author_tag).get_text(strip=True)
    return RssItem(
        title=_child_text(node, "title") or NO_TITLE,
        link=link,
        pub_date=_iso_date(_child_text(node, "published", "updated")) or parsed_at,
        image=first_image(body) or _media_image(node) or first_image(summary),
        source=source_name,
        source_id=source_id,
        description=sanitize_description(summary or body, limit),
        author=author,
        categories=[
            tag.get("term")
            for tag in node.find_all("category", recursive=False)
            if tag.get("term")
        ],
        content=body,
        guid=_child_text(node, "id") or (link if link != NO_LINK else None),
    )


def _child_text(node: Any, *names: str) -> str:
    for name in names:
        for tag in node.find_all(name, recursive=False):
            text = tag.get_text(strip=True)
            if text:
                return text
    return ""


def _atom_link(node: Any) -> str:
    links = node.find_all("link", recursive=False)
    for link in links:
        rel = (link.get("rel") or "alternate").lower()
        if rel == "alternate" and link.get("href"):
            return link["href"].strip()
    for link in links:
        if link.get("href"):
            return link["href"].strip()
    return ""


def _enclosure_image(node: Any) -> str | None:
    for enclosure in node.find_all("enclosure", recursive=False):
        media_type = (enclosure.get("type") or "").lower()
        if media_type.startswith("image/") and enclosure.get("url"):
            return enclosure["url"]
    return None


def _media_image(node: Any) -> str | None:
    for name in ("media:content", "media:thumbnail"):
        tag = node.find(name, recursive=False)
        if tag is not None and tag.get("url"):
            return tag["url"]
    return None


def _iso_date(value: str) -> str | None:
    if not value:
        return None
    try:
        parsed = date_parser.parse(value)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc).isoformat()
    except (ValueError, TypeError, OverflowError):
        return None


def first_image(html: str | None) -> str | None:
    """Return the ``src`` of the first ``<img>`` in an HTML fragment."""
    if not html or "<img" not in html.lower():
        return None
    img = BeautifulSoup(html, "html.parser").find("img", src=True)
    return img["src"] if img else None


def strip_html(html: str | None) -> str:
    if not html:
        return ""
    if "<" not in html:
        return " ".join(html.split())
    text = BeautifulSoup(html, "html.parser").get_text(" ")
    return " ".join(text.split())


def sanitize_description(html: str | None, limit: int = 200) -> str:
    return strip_html(html)[:limit]
