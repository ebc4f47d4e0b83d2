"""Dependency injection functions for FastAPI.

This module provides dependency injection for the application, including:
- Settings singleton
- The shared FileCache singleton
- Utility functions for testing (reset_dependencies)
"""

from typing import Optional

from diffcache.cache.file_cache import FileCache
from diffcache.config import CacheConfig, Settings, get_settings


# Shared cache singleton
_file_cache: Optional[FileCache] = None


def get_file_cache() -> FileCache:
    """Get or create the shared cache.

    The cache is normally installed by the application lifespan. When it is
    not (for example when a route is exercised without the lifespan), a cache
    is created from settings on first use.

    Returns:
        FileCache: The server's cache, bound to the server session
    """
    global _file_cache
    if _file_cache is None:
        _file_cache = FileCache.from_config(CacheConfig.from_settings(get_settings()))
    return _file_cache


def set_file_cache(cache: FileCache) -> None:
    """Install the shared cache."""
    global _file_cache
    _file_cache = cache


def reset_dependencies() -> None:
    """Close and drop all dependency singletons (for testing and shutdown)."""
    global _file_cache
    if _file_cache is not None:
        _file_cache.close()
    _file_cache = None
    get_settings.cache_clear()


__all__ = [
    "Settings",
    "get_settings",
    "get_file_cache",
    "set_file_cache",
    "reset_dependencies",
]
