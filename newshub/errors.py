from __future__ import annotations

from enum import Enum
from typing import Any


class NewsHubError(Exception):
    """Base class for errors raised by the aggregation layer."""


class ProviderErrorKind(str, Enum):
    TIMEOUT = "timeout"
    HTTP = "http"
    PARSE = "parse"
    CONFIGURATION = "configuration"


class ProviderError(NewsHubError):
    """A single upstream call failed. Recoverable: the next provider is tried."""

    def __init__(
        self,
        provider: str,
        kind: ProviderErrorKind,
        message: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.kind = kind
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.provider}: {self.kind.value} {self.status_code} - {self.message}"
        return f"{self.provider}: {self.kind.value} - {self.message}"

    def as_log_context(self) -> dict[str, Any]:
        return {
            "provider": self.provider,
            "kind": self.kind.value,
            "status_code": self.status_code,
            "error": self.message,
        }


class ConfigurationError(ProviderError):
    """Required credential or endpoint missing; raised before any network I/O."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(provider, ProviderErrorKind.CONFIGURATION, message)


class UnknownSourceError(NewsHubError):
    def __init__(self, scope: str, source_id: str) -> None:
        super().__init__(f"Invalid source '{source_id}' for {scope} scope")
        self.scope = scope
        self.source_id = source_id


class AggregationExhausted(NewsHubError):
    """Every provider in the resolved chain failed or returned nothing."""

    def __init__(self, attempts: list[str]) -> None:
        self.attempts = attempts
        detail = "; ".join(attempts) if attempts else "no providers available"
        super().__init__(f"Failed to fetch news from any provider ({detail})")
