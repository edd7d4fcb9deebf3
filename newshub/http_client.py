import asyncio

import httpx

from .config import get_settings

_client: httpx.AsyncClient | None = None
_client_lock = asyncio.Lock()

FEED_ACCEPT = "application/rss+xml, application/xml, text/xml, application/atom+xml, */*"


async def get_http_client() -> httpx.AsyncClient:
    """Return the process-wide client shared by every provider."""
    global _client

    if _client is None:
        async with _client_lock:
            if _client is None:
                settings = get_settings()
                limits = httpx.Limits(
                    max_connections=settings.http_max_connections,
                    max_keepalive_connections=settings.http_max_keepalive,
                )
                _client = httpx.AsyncClient(
                    timeout=settings.http_timeout,
                    limits=limits,
                    follow_redirects=True,
                    headers={
                        "User-Agent": settings.http_user_agent,
                        "Accept-Language": "en-US,en;q=0.9",
                    },
                )
    return _client


async def shutdown_http_client() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
