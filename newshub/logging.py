from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

import structlog


def _add_ts(_: Any, __: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    event_dict.setdefault("ts", datetime.now(timezone.utc).isoformat(timespec="milliseconds"))
    return event_dict


def _add_level(_: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    event_dict["level"] = str(event_dict.get("level") or method_name).lower()
    return event_dict


def _add_service(service_name: str):
    def _inner(_: Any, __: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return _inner


# Provider credentials travel as query params; keep them out of the logs.
_SECRET_KEYS = {
    "authorization", "token", "access_token", "api_key", "apikey",
    "x-api-key", "password", "secret",
}


def _secret_guard(_: Any, __: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    for key in list(event_dict.keys()):
        if str(key).lower() in _SECRET_KEYS:
            event_dict[key] = "***redacted***"
    return event_dict


_logger: structlog.BoundLogger | None = None


def configure_logging(service_name: str = "newshub", *, level: int | str = logging.INFO) -> None:
    """
    Configure a single structlog stack for the API and background jobs.
    """
    global _logger

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(message)s",
        stream=sys.stderr,
        force=True,
    )

    structlog.configure(
        processors=[
            _add_ts,
            _add_level,
            _add_service(service_name),
            _secret_guard,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _logger = structlog.get_logger()


def get_logger() -> structlog.BoundLogger:
    global _logger
    if _logger is None:
        configure_logging()
    return _logger
