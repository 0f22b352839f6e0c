"""
Simple caching utilities for species profile lookups.

Profiles are static configuration, so entries live for the process lifetime
(bounded LRU, no TTL). Lookups may come from several request threads at once.
"""

from __future__ import annotations
from cachetools import LRUCache
from typing import Callable, Any, Optional
from functools import wraps
import threading

# Cache configuration constants
PROFILE_CACHE_MAX_ENTRIES = 512

# Thread-safe profile cache
# Key format: "profile:{normalized scientific name}"
_profile_cache = LRUCache(maxsize=PROFILE_CACHE_MAX_ENTRIES)
_cache_lock = threading.Lock()


def profile_cache_key(scientific_name: Optional[str]) -> str:
    """Normalize a scientific name into a cache key (case/space-insensitive)."""
    normalized = " ".join((scientific_name or "").split()).lower()
    return f"profile:{normalized}"


def cache_profile_lookup(func: Callable) -> Callable:
    """
    Decorator to cache species profile lookups for the process lifetime.

    Cache key is the normalized scientific name, so "Aloe vera" and
    " aloe  VERA " share one entry. Thread-safe using lock to prevent
    race conditions.

    Usage:
        @cache_profile_lookup
        def get_profile(scientific_name):
            # Table/remote lookup...
            return profile
    """
    @wraps(func)
    def wrapper(scientific_name: Optional[str]) -> Any:
        cache_key = profile_cache_key(scientific_name)

        with _cache_lock:
            if cache_key in _profile_cache:
                return _profile_cache[cache_key]

        # Not in cache - call the function
        result = func(scientific_name)

        # Fallbacks stay uncached so a later lookup can still find the species
        if getattr(result, "is_fallback", False):
            return result

        with _cache_lock:
            _profile_cache[cache_key] = result

        return result

    return wrapper


def invalidate_profile(scientific_name: str) -> None:
    """
    Invalidate the cached profile for one species.

    Args:
        scientific_name: Species whose cached profile should be dropped
    """
    with _cache_lock:
        _profile_cache.pop(profile_cache_key(scientific_name), None)


def clear_profile_cache() -> None:
    """
    Clear the entire profile cache.

    Useful for:
    - Testing
    - Picking up edits to the remote species table
    """
    with _cache_lock:
        _profile_cache.clear()


def profile_cache_size() -> int:
    with _cache_lock:
        return len(_profile_cache)
