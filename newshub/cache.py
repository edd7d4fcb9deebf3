from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Protocol

import aiosqlite
import orjson
from pydantic import ValidationError

from .config import Settings
from .logging import get_logger
from .models.news import CacheEntry, NewsQuery, NewsResponse

logger = get_logger().bind(module="news_cache")

Clock = Callable[[], datetime]

_LOWERCASE_KEYS = {"region", "scope", "source"}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_cache_key(params: Mapping[str, Any]) -> str:
    """Canonical key for a set of request parameters.

    Keys are sorted and empty values dropped, so logically identical requests
    map to the same key regardless of how the mapping was built.
    """
    canonical: dict[str, Any] = {}
    for name, value in params.items():
        if value is None:
            continue
        if isinstance(value, str):
            value = value.strip()
            if not value:
                continue
            if name in _LOWERCASE_KEYS:
                value = value.lower()
        elif name.endswith("_id") and not isinstance(value, bool):
            value = str(value)
        canonical[name] = value
    return orjson.dumps(canonical, option=orjson.OPT_SORT_KEYS).decode()


def query_cache_key(query: NewsQuery, **extra: Any) -> str:
    return build_cache_key({**query.model_dump(), **extra})


class CacheStore(Protocol):
    async def get(self, key: str) -> CacheEntry | None: ...

    async def set(self, key: str, response: NewsResponse, ttl_seconds: float) -> CacheEntry: ...

    async def close(self) -> None: ...


def _make_entry(response: NewsResponse, now: datetime, ttl_seconds: float) -> CacheEntry:
    return CacheEntry(
        response=response.model_copy(deep=True),
        cached_at=now,
        expires_at=now + timedelta(seconds=ttl_seconds),
    )


class InMemoryCacheStore:
    """Process-local store; entries are replaced whole, never edited."""

    def __init__(self, clock: Clock | None = None) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._clock = clock or utcnow

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry

    async def set(self, key: str, response: NewsResponse, ttl_seconds: float) -> CacheEntry:
        now = self._clock()
        self._prune(now)
        entry = _make_entry(response, now, ttl_seconds)
        self._entries[key] = entry
        return entry

    def _prune(self, now: datetime) -> None:
        expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
        for key in expired:
            del self._entries[key]

    async def close(self) -> None:
        self._entries.clear()


class SQLiteCacheStore:
    """Persistent store backed by a single ``news_cache`` table."""

    def __init__(self, path: str | Path, clock: Clock | None = None) -> None:
        self._path = str(path)
        self._clock = clock or utcnow
        self._db: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    async def open(self) -> None:
        async with self._lock:
            if self._db is not None:
                return
            db = await aiosqlite.connect(self._path)
            try:
                await db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS news_cache (
                        key TEXT PRIMARY KEY,
                        entry TEXT NOT NULL,
                        expires_at REAL NOT NULL
                    )
                    """
                )
                await db.commit()
            except aiosqlite.Error:
                await db.close()
                raise
            self._db = db

    async def _connection(self) -> aiosqlite.Connection:
        if self._db is None:
            await self.open()
        return self._db

    async def get(self, key: str) -> CacheEntry | None:
        try:
            db = await self._connection()
            async with db.execute(
                "SELECT entry, expires_at FROM news_cache WHERE key = ?", (key,)
            ) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            logger.warning("cache_read_failed", key=key, error=str(exc))
            return None
        if row is None:
            return None
        payload, expires_at = row
        if self._clock().timestamp() >= expires_at:
            return None
        try:
            return CacheEntry.model_validate_json(payload)
        except ValidationError as exc:
            logger.warning("cache_entry_unreadable", key=key, error=str(exc))
            return None

    async def set(self, key: str, response: NewsResponse, ttl_seconds: float) -> CacheEntry:
        entry = _make_entry(response, self._clock(), ttl_seconds)
        try:
            db = await self._connection()
            await self._upsert(db, key, entry)
        except aiosqlite.Error as exc:
            logger.warning("cache_write_failed", key=key, error=str(exc))
        return entry

    async def _upsert(self, db: aiosqlite.Connection, key: str, entry: CacheEntry) -> None:
        await db.execute(
            """
            INSERT INTO news_cache (key, entry, expires_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                entry = excluded.entry,
                expires_at = excluded.expires_at
            """,
            (key, entry.model_dump_json(), entry.expires_at.timestamp()),
        )
        await db.commit()

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None


def build_cache_store(settings: Settings) -> CacheStore:
    if settings.cache_backend == "sqlite":
        return SQLiteCacheStore(settings.cache_sqlite_path)
    return InMemoryCacheStore()
