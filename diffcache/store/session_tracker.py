"""
Per-session read pointers.

A pointer records which version of a path a session was last shown. It is
the only state consulted to decide between a cold start, an unchanged
summary and a diff.
"""

import logging
from typing import Optional

from diffcache.interfaces.cache import ISessionTracker
from diffcache.store.database import Database

logger = logging.getLogger(__name__)


class SessionTracker(ISessionTracker):
    """Session pointer table backed by the shared Database."""

    def __init__(self, database: Database):
        self._db = database

    def get_last_seen(self, session_id: str, path: str) -> Optional[str]:
        row = self._db.connection.execute(
            "SELECT hash FROM session_reads WHERE session_id = ? AND path = ?",
            (session_id, path),
        ).fetchone()
        return row[0] if row else None

    def record_seen(
        self,
        session_id: str,
        path: str,
        content_hash: str,
        timestamp: int,
    ) -> None:
        self._db.connection.execute(
            "INSERT INTO session_reads (session_id, path, hash, read_at) VALUES (?, ?, ?, ?) "
            "ON CONFLICT(session_id, path) DO UPDATE SET hash = excluded.hash, read_at = excluded.read_at",
            (session_id, path, content_hash, timestamp),
        )

    def purge_path(self, path: str) -> int:
        cursor = self._db.connection.execute(
            "DELETE FROM session_reads WHERE path = ?", (path,)
        )
        if cursor.rowcount:
            logger.debug(f"Reset {cursor.rowcount} session pointers for {path}")
        return cursor.rowcount

    def clear(self) -> None:
        self._db.connection.execute("DELETE FROM session_reads")
