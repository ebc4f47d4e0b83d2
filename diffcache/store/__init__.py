"""Durable SQLite store for file versions, session pointers and savings."""

from diffcache.store.database import Database, now_ms
from diffcache.store.content_store import ContentStore
from diffcache.store.session_tracker import SessionTracker
from diffcache.store.stats import StatsAccumulator

__all__ = [
    "Database",
    "now_ms",
    "ContentStore",
    "SessionTracker",
    "StatsAccumulator",
]
