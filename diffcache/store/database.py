"""SQLite database shared by the cache store components.

This module owns the single connection to the cache database, creates the
schema exactly once and provides the transactional scope that every cache
read runs in.
"""

import asyncio
import logging
import sqlite3
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional, Union

from diffcache.exceptions import NotInitializedException, StorageException

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS file_versions (
  path        TEXT NOT NULL,
  hash        TEXT NOT NULL,
  content     TEXT NOT NULL,
  lines       INTEGER NOT NULL,
  created_at  INTEGER NOT NULL,
  PRIMARY KEY (path, hash)
);

CREATE TABLE IF NOT EXISTS session_reads (
  session_id  TEXT NOT NULL,
  path        TEXT NOT NULL,
  hash        TEXT NOT NULL,
  read_at     INTEGER NOT NULL,
  PRIMARY KEY (session_id, path)
);

CREATE INDEX IF NOT EXISTS idx_session_reads_path
ON session_reads(path);

CREATE TABLE IF NOT EXISTS stats (
  key   TEXT PRIMARY KEY,
  value INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS session_stats (
  session_id  TEXT NOT NULL,
  key         TEXT NOT NULL,
  value       INTEGER NOT NULL DEFAULT 0,
  PRIMARY KEY (session_id, key)
);

INSERT OR IGNORE INTO stats (key, value) VALUES ('tokens_saved', 0);
"""


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


class Database:
    """
    Owner of the SQLite connection backing the cache.

    The connection runs in autocommit mode; all grouped work goes through
    transaction(), which serializes writers inside the process with an
    asyncio.Lock and takes SQLite's write lock with BEGIN IMMEDIATE so that
    other processes sharing the same file are serialized as well.

    Attributes:
        db_path: Location of the database file (or ":memory:")

    Example:
        >>> db = Database("/tmp/cache/cache.db")
        >>> await db.init()
        >>> async with db.transaction() as conn:
        ...     conn.execute("SELECT COUNT(*) FROM file_versions").fetchone()
        >>> db.close()
    """

    def __init__(self, db_path: Union[str, Path], busy_timeout_ms: int = 5000):
        """
        Initialize the database handle. No connection is opened until init().

        Args:
            db_path: Path of the SQLite file. Parent directories are created on init.
            busy_timeout_ms: How long a statement waits for another connection's
                            lock before failing with a StorageException.
        """
        self.db_path = str(db_path)
        self._busy_timeout_ms = busy_timeout_ms
        self._conn: Optional[sqlite3.Connection] = None
        self._initialized = False
        self._init_lock = asyncio.Lock()
        self._tx_lock = asyncio.Lock()

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def connection(self) -> sqlite3.Connection:
        """
        The open connection.

        Raises:
            NotInitializedException: If init() has not completed
        """
        if self._conn is None:
            raise NotInitializedException(
                "Database not initialized. Call init() first.",
                details={"db_path": self.db_path},
            )
        return self._conn

    async def init(self) -> None:
        """
        Open the connection and create the schema.

        Idempotent: the first successful call flips a one-time flag and every
        later call returns immediately.

        Raises:
            StorageException: If the file cannot be opened or the schema
                             cannot be created
        """
        if self._initialized:
            return

        async with self._init_lock:
            if self._initialized:
                return

            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

            try:
                conn = sqlite3.connect(
                    self.db_path,
                    isolation_level=None,
                    check_same_thread=False,
                )
                conn.execute(f"PRAGMA busy_timeout = {int(self._busy_timeout_ms)}")
                conn.execute("PRAGMA journal_mode = WAL")
                conn.executescript(SCHEMA)
            except sqlite3.Error as e:
                raise StorageException(
                    f"Failed to initialize cache database: {e}",
                    details={"db_path": self.db_path},
                ) from e

            self._conn = conn
            self._initialized = True
            logger.info(f"Cache database ready at {self.db_path}")

    @asynccontextmanager
    async def transaction(self, immediate: bool = True) -> AsyncIterator[sqlite3.Connection]:
        """
        Run a block of statements atomically.

        The block commits when it exits normally and rolls back on any
        exception. sqlite3 errors raised inside the block are converted to
        StorageException; other exceptions propagate unchanged.

        Args:
            immediate: Take the write lock up front (BEGIN IMMEDIATE). Pass
                      False for read-only blocks.

        Yields:
            The open sqlite3 connection

        Raises:
            NotInitializedException: If init() has not completed
            StorageException: If the store rejects a statement or the commit
        """
        conn = self.connection
        async with self._tx_lock:
            try:
                conn.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
            except sqlite3.Error as e:
                raise StorageException(
                    f"Could not start transaction: {e}",
                    details={"db_path": self.db_path},
                ) from e

            try:
                yield conn
            except sqlite3.Error as e:
                self._rollback(conn)
                raise StorageException(
                    f"Storage operation failed: {e}",
                    details={"db_path": self.db_path},
                ) from e
            except BaseException:
                self._rollback(conn)
                raise

            try:
                conn.execute("COMMIT")
            except sqlite3.Error as e:
                self._rollback(conn)
                raise StorageException(
                    f"Commit failed: {e}",
                    details={"db_path": self.db_path},
                ) from e

    @staticmethod
    def _rollback(conn: sqlite3.Connection) -> None:
        if conn.in_transaction:
            conn.execute("ROLLBACK")

    def close(self) -> None:
        """
        Close the connection. Safe to call when nothing is open.

        A closed Database can be opened again with init().
        """
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.debug(f"Cache database closed: {self.db_path}")
        self._initialized = False
