from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="", extra="ignore", populate_by_name=True
    )

    http_timeout: float = Field(10.0, gt=0, alias="HTTP_TIMEOUT")
    http_max_connections: int = Field(20, ge=1, alias="HTTP_MAX_CONNECTIONS")
    http_max_keepalive: int = Field(10, ge=1, alias="HTTP_MAX_KEEPALIVE")
    http_user_agent: str = Field(
        "NewsHub/1.0 (+https://newshub.example; contact=admin@newshub.example)",
        alias="HTTP_USER_AGENT",
    )

    news_api_key: str | None = Field(default=None, alias="NEWS_API_KEY")
    news_api_base_url: str = Field(
        "https://newsapi.org/v2", alias="NEWS_API_BASE_URL"
    )
    gnews_api_key: str | None = Field(default=None, alias="GNEWS_API_KEY")
    gnews_base_url: str = Field("https://gnews.io/api/v4", alias="GNEWS_BASE_URL")
    led_api_base_url: str | None = Field(
        "http://led.weytech.et:1338/api", alias="LED_API_BASE_URL"
    )
    led_media_base_url: str = Field(
        "http://led.weytech.et:1338", alias="LED_MEDIA_BASE_URL"
    )

    newsapi_timeout: float = Field(8.0, gt=0, alias="NEWSAPI_TIMEOUT")
    gnews_timeout: float = Field(8.0, gt=0, alias="GNEWS_TIMEOUT")
    led_timeout: float = Field(10.0, gt=0, alias="LED_TIMEOUT")
    rss_timeout: float = Field(15.0, gt=0, alias="RSS_TIMEOUT")

    global_provider_chain: list[str] = Field(
        default_factory=lambda: ["newsapi", "gnews", "led", "rss"],
        alias="GLOBAL_PROVIDER_CHAIN",
    )
    local_provider_chain: list[str] = Field(
        default_factory=lambda: ["led", "gnews", "rss"],
        alias="LOCAL_PROVIDER_CHAIN",
    )
    default_language: str = Field("en", alias="DEFAULT_LANGUAGE")
    local_country: str = Field("et", alias="LOCAL_COUNTRY")

    cache_backend: Literal["memory", "sqlite"] = Field(
        "memory", alias="CACHE_BACKEND"
    )
    cache_sqlite_path: str = Field("newshub_cache.db", alias="CACHE_SQLITE_PATH")
    cache_ttl_seconds: float = Field(30 * 60, gt=0, alias="CACHE_TTL_SECONDS")
    cache_ttl_specific_seconds: float = Field(
        10 * 60, gt=0, alias="CACHE_TTL_SPECIFIC_SECONDS"
    )

    rss_description_limit: int = Field(200, ge=1, alias="RSS_DESCRIPTION_LIMIT")
    rss_max_items: int = Field(50, ge=1, alias="RSS_MAX_ITEMS")

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    service_name: str = Field("newshub", alias="SERVICE_NAME")


@lru_cache
def get_settings() -> Settings:
    return Settings()
