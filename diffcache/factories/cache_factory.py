"""
Factory assembling a cache and its optional watcher from configuration.
"""

import logging
from typing import Optional, Tuple

from diffcache.cache.file_cache import FileCache
from diffcache.cache.watcher import FileWatcher
from diffcache.config import CacheConfig

logger = logging.getLogger(__name__)


def create_cache(config: CacheConfig) -> Tuple[FileCache, Optional[FileWatcher]]:
    """
    Create a FileCache and, when watch paths are configured, a FileWatcher.

    The watcher is returned unstarted; call watcher.watch(config.watch_paths)
    from inside the running event loop.

    Args:
        config: Cache configuration

    Returns:
        Tuple of (cache, watcher or None)

    Example:
        >>> cache, watcher = create_cache(CacheConfig.from_settings(get_settings()))
        >>> await cache.init()
        >>> if watcher:
        ...     watcher.watch(config.watch_paths)
    """
    cache = FileCache.from_config(config)
    watcher = None
    if config.watch_paths:
        watcher = FileWatcher(cache, debounce_ms=config.debounce_ms)

    logger.info(
        f"Created cache: db={config.db_path}, session={config.session_id}, "
        f"watching={len(config.watch_paths)} roots"
    )
    return cache, watcher
