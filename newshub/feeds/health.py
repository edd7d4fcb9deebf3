from __future__ import annotations

import re

import httpx

from ..http_client import FEED_ACCEPT
from ..models.news import FeedHealth
from .registry import FeedEntry

_FEED_ROOT = re.compile(r"<(rss|feed|rdf:RDF)[\s>]", re.IGNORECASE)


async def check_feed(client: httpx.AsyncClient, entry: FeedEntry, timeout: float) -> FeedHealth:
    """GET the primary URL and report whether it serves an RSS/Atom/RDF document."""
    try:
        response = await client.get(
            entry.primary_url, headers={"Accept": FEED_ACCEPT}, timeout=timeout
        )
    except httpx.HTTPError as exc:
        return FeedHealth(
            scope=entry.scope,
            source_id=entry.source_id,
            url=entry.primary_url,
            ok=False,
            error=str(exc) or type(exc).__name__,
        )

    error = None
    if not response.is_success:
        error = response.reason_phrase or "HTTP error"
    elif not _FEED_ROOT.search(response.text):
        error = "Not XML/RSS"
    return FeedHealth(
        scope=entry.scope,
        source_id=entry.source_id,
        url=entry.primary_url,
        ok=error is None,
        status_code=response.status_code,
        error=error,
    )
