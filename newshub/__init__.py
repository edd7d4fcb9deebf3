"""Multi-source news aggregation with provider fallback and TTL caching."""

__version__ = "0.1.0"
