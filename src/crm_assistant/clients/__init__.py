"""Clients package - access to the cache, the data API and the model."""

from crm_assistant.clients.cache import (
    CacheStore,
    check_redis_health,
    close_redis_client,
    get_redis_client,
)
from crm_assistant.clients.fetcher import FetchError, FetchTimeoutError, TimeoutFetcher
from crm_assistant.clients.model import GeminiClient, ModelClientError

__all__ = [
    "CacheStore",
    "check_redis_health",
    "close_redis_client",
    "get_redis_client",
    "FetchError",
    "FetchTimeoutError",
    "TimeoutFetcher",
    "GeminiClient",
    "ModelClientError",
]
