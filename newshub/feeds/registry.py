from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from types import MappingProxyType

from ..errors import UnknownSourceError
from ..models.news import Region, SourceOption

SCOPES: tuple[Region, ...] = ("local", "global")


@dataclass(frozen=True, slots=True)
class FeedEntry:
    scope: Region
    source_id: str
    name: str
    primary_url: str
    alternate_urls: tuple[str, ...] = ()

    @property
    def urls(self) -> tuple[str, ...]:
        return (self.primary_url, *self.alternate_urls)


SOURCE_NAMES = MappingProxyType(
    {
        "fanabc": "Fana BC",
        "addis-standard": "Addis Standard",
        "reporter-ethiopia": "Reporter Ethiopia",
        "ethiopian-monitor": "Ethiopian Monitor",
        "ena": "Ethiopian News Agency",
        "bbc": "BBC News",
        "cnn": "CNN",
        "aljazeera": "Al Jazeera",
        "reuters": "Reuters",
        "ap": "Associated Press",
        "dw": "Deutsche Welle",
    }
)


def format_source_name(source_id: str) -> str:
    known = SOURCE_NAMES.get(source_id)
    if known:
        return known
    if not source_id:
        return "News Source"
    return source_id[:1].upper() + source_id[1:].replace("-", " ")


def _feed(scope: Region, source_id: str, url: str, *alternates: str) -> FeedEntry:
    return FeedEntry(
        scope=scope,
        source_id=source_id,
        name=format_source_name(source_id),
        primary_url=url,
        alternate_urls=tuple(alternates),
    )


DEFAULT_FEEDS: tuple[FeedEntry, ...] = (
    _feed("local", "fanabc", "https://www.fanabc.com/feed/", "https://www.fanabc.com/rss/"),
    _feed(
        "local",
        "addis-standard",
        "https://addisstandard.com/feed/",
        "https://addisstandard.com/rss/",
    ),
    _feed(
        "local",
        "reporter-ethiopia",
        "https://www.thereporterethiopia.com/feed/",
        "https://www.thereporterethiopia.com/rss/",
    ),
    _feed(
        "local",
        "ethiopian-monitor",
        "https://ethiopianmonitor.com/feed/",
        "https://ethiopianmonitor.com/rss/",
    ),
    _feed("local", "ena", "https://www.ena.et/feed/", "https://www.ena.et/rss/"),
    _feed("global", "bbc", "https://feeds.bbci.co.uk/news/rss.xml"),
    _feed(
        "global",
        "cnn",
        "http://rss.cnn.com/rss/edition.rss",
        "http://rss.cnn.com/rss/edition_world.rss",
        "https://rss.cnn.com/rss/edition.rss",
    ),
    _feed("global", "aljazeera", "https://www.aljazeera.com/xml/rss/all.xml"),
    _feed(
        "global",
        "reuters",
        "http://feeds.reuters.com/reuters/topNews",
        "http://feeds.reuters.com/reuters/worldNews",
        "https://feeds.reuters.com/reuters/topNews",
    ),
    _feed(
        "global",
        "ap",
        "http://feeds.apnews.com/apf-topnews",
        "http://feeds.apnews.com/apf-internationalnews",
        "https://rss.ap.org/rss/topnews.xml",
    ),
    _feed("global", "dw", "https://rss.dw.com/rdf/rss-en-all"),
)


class FeedRegistry:
    """Read-only lookup of feed URLs by scope and source id."""

    __slots__ = ("_entries",)

    def __init__(self, entries: Iterable[FeedEntry] = DEFAULT_FEEDS) -> None:
        by_scope: dict[str, dict[str, FeedEntry]] = {scope: {} for scope in SCOPES}
        for entry in entries:
            by_scope[entry.scope][entry.source_id] = entry
        self._entries = MappingProxyType(
            {scope: MappingProxyType(items) for scope, items in by_scope.items()}
        )

    def has(self, scope: str, source_id: str) -> bool:
        return source_id in self._entries.get(scope, {})

    def get(self, scope: str, source_id: str) -> FeedEntry:
        try:
            return self._entries[scope][source_id]
        except KeyError:
            raise UnknownSourceError(scope, source_id) from None

    def entries(self, scope: str) -> tuple[FeedEntry, ...]:
        return tuple(self._entries.get(scope, {}).values())

    def available_sources(self, scope: str) -> list[SourceOption]:
        return [
            SourceOption(id=entry.source_id, name=entry.name)
            for entry in self.entries(scope)
        ]


default_registry = FeedRegistry()
