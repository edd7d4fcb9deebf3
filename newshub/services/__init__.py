from .news import NewsService

__all__ = ["NewsService"]
