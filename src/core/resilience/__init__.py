"""Resiliencia: reintentos con backoff y cache LRU+TTL."""

from core.resilience.cache import CacheEntry, TTLCache
from core.resilience.retry import RetryPolicy, default_should_retry, retry_everything, run_with_retry

__all__ = [
    "CacheEntry",
    "RetryPolicy",
    "TTLCache",
    "default_should_retry",
    "retry_everything",
    "run_with_retry",
]
