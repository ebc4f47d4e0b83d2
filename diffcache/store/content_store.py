"""
Content-addressed storage of file versions.

Every distinct content a path has been observed with is kept as one row keyed
by (path, hash). Rows are written insert-if-absent and never updated, so a
given key always maps to the content first stored under it.
"""

import logging
from typing import Optional

from diffcache.interfaces.cache import IContentStore
from diffcache.store.database import Database, now_ms

logger = logging.getLogger(__name__)


class ContentStore(IContentStore):
    """
    File version table backed by the shared Database.

    Implements the IContentStore interface. Methods execute directly on the
    database connection; run them inside Database.transaction() when they
    must be atomic with other store calls.

    Example:
        >>> store = ContentStore(db)
        >>> store.put_version("/repo/a.py", "0123456789abcdef", "x = 1\\n", 2)
        >>> store.get_version("/repo/a.py", "0123456789abcdef")
        'x = 1\\n'
    """

    def __init__(self, database: Database):
        self._db = database

    def put_version(
        self,
        path: str,
        content_hash: str,
        content: str,
        line_count: int,
        created_at: Optional[int] = None,
    ) -> None:
        self._db.connection.execute(
            "INSERT OR IGNORE INTO file_versions (path, hash, content, lines, created_at) "
            "VALUES (?, ?, ?, ?, ?)",
            (path, content_hash, content, line_count, created_at if created_at is not None else now_ms()),
        )

    def get_version(self, path: str, content_hash: str) -> Optional[str]:
        row = self._db.connection.execute(
            "SELECT content FROM file_versions WHERE path = ? AND hash = ?",
            (path, content_hash),
        ).fetchone()
        return row[0] if row else None

    def count_distinct_paths(self) -> int:
        row = self._db.connection.execute(
            "SELECT COUNT(DISTINCT path) FROM file_versions"
        ).fetchone()
        return row[0]

    def purge_path(self, path: str) -> int:
        cursor = self._db.connection.execute(
            "DELETE FROM file_versions WHERE path = ?", (path,)
        )
        if cursor.rowcount:
            logger.debug(f"Purged {cursor.rowcount} versions of {path}")
        return cursor.rowcount

    def clear(self) -> None:
        self._db.connection.execute("DELETE FROM file_versions")
