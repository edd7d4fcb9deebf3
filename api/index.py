from __future__ import annotations

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import ORJSONResponse
from mangum import Mangum

from newshub.cache import CacheStore, build_cache_store
from newshub.config import get_settings
from newshub.errors import NewsHubError, UnknownSourceError
from newshub.feeds.registry import SCOPES
from newshub.http_client import shutdown_http_client
from newshub.logging import configure_logging, get_logger
from newshub.models.news import NewsQuery, NewsResponse, Region
from newshub.services import NewsService

logger = get_logger().bind(module="api")

app = FastAPI(
    title="NewsHub Aggregation API",
    version="0.1.0",
    description=(
        "Local and global headlines aggregated from news APIs, a CMS and RSS feeds, "
        "with provider fallback and TTL caching."
    ),
    default_response_class=ORJSONResponse,
)


def get_cache_store(request: Request) -> CacheStore:
    state = request.app.state
    if getattr(state, "news_cache", None) is None:
        state.news_cache = build_cache_store(get_settings())
    return state.news_cache


def get_news_service(cache: CacheStore = Depends(get_cache_store)) -> NewsService:
    return NewsService(cache=cache)


def _error(status_code: int, message: str) -> ORJSONResponse:
    return ORJSONResponse({"status": "error", "message": message}, status_code=status_code)


def _respond(result: NewsResponse):
    if result.status == "error":
        return ORJSONResponse(
            result.model_dump(mode="json", by_alias=True), status_code=502
        )
    return result


def _validate_scope(scope: str) -> Region | None:
    scope = scope.lower()
    return scope if scope in SCOPES else None


@app.exception_handler(UnknownSourceError)
async def unknown_source_handler(_: Request, exc: UnknownSourceError) -> ORJSONResponse:
    return _error(400, str(exc))


@app.exception_handler(NewsHubError)
async def newshub_error_handler(request: Request, exc: NewsHubError) -> ORJSONResponse:
    logger.error("request_failed", path=request.url.path, error=str(exc))
    return _error(500, str(exc) or "Failed to fetch news")


@app.get("/health", tags=["system"])
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/news", tags=["news"])
async def news(
    region: Region = Query("global", description="local or global headlines"),
    source: str | None = Query(None, description="Feed id or provider name"),
    tenant_id: str | None = Query(None, alias="tenantId"),
    tenant: str | None = Query(None),
    category_id: str | None = Query(None, alias="categoryId"),
    category: str | None = Query(None),
    q: str | None = Query(None, description="Free-text search"),
    search: str | None = Query(None),
    date_gt: str | None = Query(None, alias="dateGt"),
    page: int | None = Query(None, ge=1),
    page_size: int | None = Query(None, ge=1, le=100, alias="pageSize"),
    service: NewsService = Depends(get_news_service),
):
    query = NewsQuery(
        region=region,
        source=source,
        tenant_id=tenant_id or tenant,
        category_id=category_id or category,
        query=q or search,
        date_gt=date_gt,
        page=page,
        page_size=page_size,
    )
    return _respond(await service.fetch_news(query))


@app.get("/news/article", tags=["news"])
async def news_article(
    id: str | None = Query(None, description="Article id or document id"),
    service: NewsService = Depends(get_news_service),
):
    if not id:
        return _error(400, "id parameter is required")
    article = await service.get_article(id)
    if article is None:
        return _error(404, "Article not found")
    return {"status": "ok", "article": article}


@app.get("/news/sources", tags=["news"])
async def news_sources(service: NewsService = Depends(get_news_service)):
    catalog = await service.list_sources()
    return {"status": "ok", **catalog.model_dump(mode="json", by_alias=True)}


@app.get("/rss/health", tags=["rss"])
async def rss_health(
    scope: str | None = Query(None, description="Restrict the check to one scope"),
    service: NewsService = Depends(get_news_service),
):
    region = None
    if scope:
        region = _validate_scope(scope)
        if region is None:
            return _error(400, 'Invalid scope. Must be "local" or "global"')
    reports = await service.check_feeds(region)
    return {
        "status": "ok",
        "healthy": sum(1 for report in reports if report.ok),
        "failed": sum(1 for report in reports if not report.ok),
        "feeds": reports,
    }


@app.get("/rss/{scope}", tags=["rss"])
async def rss_scope(scope: str, service: NewsService = Depends(get_news_service)):
    region = _validate_scope(scope)
    if region is None:
        return _error(400, 'Invalid scope. Must be "local" or "global"')
    return _respond(await service.fetch_region_feeds(region))


@app.get("/rss/{scope}/{source}", tags=["rss"])
async def rss_source(
    scope: str, source: str, service: NewsService = Depends(get_news_service)
):
    region = _validate_scope(scope)
    if region is None:
        return _error(400, 'Invalid scope. Must be "local" or "global"')
    if not service.registry.has(region, source.lower()):
        raise UnknownSourceError(region, source)
    return _respond(await service.fetch_feed(region, source.lower()))


@app.on_event("startup")
async def on_startup() -> None:
    settings = get_settings()
    configure_logging(settings.service_name, level=settings.log_level)
    app.state.news_cache = build_cache_store(settings)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    cache = getattr(app.state, "news_cache", None)
    if cache is not None:
        await cache.close()
        app.state.news_cache = None
    await shutdown_http_client()


handler = Mangum(app)
