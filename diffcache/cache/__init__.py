"""Cache package for diffcache.

Provides the session-scoped read cache, the diff engine and the change
watcher.
"""

from diffcache.cache.tokens import estimate_tokens
from diffcache.cache.differ import DiffResult, compute_diff
from diffcache.cache.file_state import FileSnapshot, content_hash, count_lines
from diffcache.cache.file_cache import (
    BatchReadItem,
    CacheStats,
    FileCache,
    FileReadResult,
)
from diffcache.cache.watcher import FileWatcher, is_ignored
from diffcache.cache.render import render_batch, render_read

__all__ = [
    "estimate_tokens",
    "DiffResult",
    "compute_diff",
    "FileSnapshot",
    "content_hash",
    "count_lines",
    "BatchReadItem",
    "CacheStats",
    "FileCache",
    "FileReadResult",
    "FileWatcher",
    "is_ignored",
    "render_batch",
    "render_read",
]
