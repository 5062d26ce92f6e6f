from .cache import (
    DEFAULT_MAX_SIZE,
    DEFAULT_TTL_SECONDS,
    CacheEntry,
    MarkingCache,
    cache_key,
    events_hash,
)

__all__ = [
    "DEFAULT_MAX_SIZE",
    "DEFAULT_TTL_SECONDS",
    "CacheEntry",
    "MarkingCache",
    "cache_key",
    "events_hash",
]
