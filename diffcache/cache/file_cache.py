"""
Session-scoped file cache returning full content, summaries or diffs.

This module provides the FileCache class, the read entry point of diffcache.
For every read it hashes the current file content and compares it with the
hash the calling session was last shown:

- never seen: the full content is returned and remembered
- same hash: a one-line "unchanged" summary is returned
- different hash: a unified diff against the remembered version is returned

Savings (approximate tokens not sent back to the caller) are accumulated
globally and per session.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from diffcache.cache.differ import compute_diff
from diffcache.cache.file_state import FileSnapshot
from diffcache.cache.tokens import estimate_tokens
from diffcache.config import CacheConfig
from diffcache.exceptions import DiffCacheException
from diffcache.interfaces.cache import IFileCache
from diffcache.store import (
    ContentStore,
    Database,
    SessionTracker,
    StatsAccumulator,
    now_ms,
)

logger = logging.getLogger(__name__)

SUMMARY_TAG = "diffcache"


@dataclass(frozen=True)
class FileReadResult:
    """
    Result of reading a file through the cache.

    Attributes:
        cached: Whether the answer was served from cache (summary or diff)
        content: Full content on a cold start, otherwise summary or diff text
        hash: Content hash of the current file
        diff: Unified diff when the file changed since the session's last read
        lines_changed: Inserted plus deleted lines (0 when unchanged)
        total_lines: Number of lines in the current file
    """
    cached: bool
    content: str
    hash: str
    diff: Optional[str] = None
    lines_changed: Optional[int] = None
    total_lines: Optional[int] = None


@dataclass(frozen=True)
class BatchReadItem:
    """One entry of read_files(): either a result or the error message."""
    path: str
    result: Optional[FileReadResult] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class CacheStats:
    """
    Cache statistics.

    Attributes:
        files_tracked: Distinct paths with at least one stored version
        tokens_saved: Approximate tokens saved across all sessions
        session_tokens_saved: Approximate tokens saved in the requested session
    """
    files_tracked: int
    tokens_saved: int
    session_tokens_saved: int


class FileCache(IFileCache):
    """
    Read cache bound to one session.

    Implements the IFileCache interface.

    Each session keeps its own pointer per path, so two sessions reading the
    same file never affect each other's answers. Several FileCache instances
    (one per session) can share one Database; for_session() creates such a
    sibling. All store access for a read happens inside a single database
    transaction, which makes the check-then-update sequence atomic even when
    the same session reads the same path concurrently.

    Attributes:
        session_id: Identifier of the session this cache answers for

    Example:
        >>> cache = FileCache.from_config(CacheConfig(db_path=Path(".diffcache/cache.db")))
        >>> await cache.init()
        >>> first = await cache.read_file("app.py")
        >>> first.cached
        False
        >>> second = await cache.read_file("app.py")
        >>> second.content
        '[diffcache: unchanged, 120 lines, 2841 tokens saved]'
        >>> cache.close()
    """

    def __init__(self, database: Database, session_id: str):
        """
        Initialize the cache.

        Args:
            database: Database shared by the stores
            session_id: Opaque identifier of the calling session
        """
        self._db = database
        self.session_id = session_id
        self._versions = ContentStore(database)
        self._sessions = SessionTracker(database)
        self._stats = StatsAccumulator(database)

    @classmethod
    def from_config(cls, config: CacheConfig) -> "FileCache":
        """Create a cache with its own Database from a CacheConfig."""
        database = Database(config.db_path, busy_timeout_ms=config.busy_timeout_ms)
        return cls(database, config.session_id)

    @property
    def database(self) -> Database:
        return self._db

    def for_session(self, session_id: str) -> "FileCache":
        """
        Return a cache for another session sharing this cache's Database.

        Closing either instance closes the shared connection.
        """
        if session_id == self.session_id:
            return self
        return FileCache(self._db, session_id)

    async def init(self) -> None:
        await self._db.init()

    async def read_file(self, path: Union[str, Path]) -> FileReadResult:
        """
        Read a file for this session.

        Args:
            path: File to read. Relative paths resolve against the cwd; the
                 resolved absolute path is the cache identity.

        Returns:
            FileReadResult describing what the session should be shown

        Raises:
            FileNotFoundException: If the file does not exist
            AccessDeniedException: If the file cannot be read
            NotAFileException: If the path is a directory
            StorageException: If the database rejects the update

        Note:
            A failed read leaves the cache untouched.
        """
        await self.init()
        snapshot = await FileSnapshot.from_path(path)
        label = str(path)
        now = now_ms()

        async with self._db.transaction():
            last_hash = self._sessions.get_last_seen(self.session_id, str(snapshot.path))

            if last_hash is None:
                logger.debug(f"Cache COLD: {path} (session={self.session_id})")
                return self._remember(snapshot, now)

            if last_hash == snapshot.content_hash:
                return self._unchanged(snapshot, now)

            return self._changed(snapshot, last_hash, label, now)

    def _remember(self, snapshot: FileSnapshot, now: int) -> FileReadResult:
        """Store the version, point the session at it and return full content."""
        abs_path = str(snapshot.path)
        self._versions.put_version(
            abs_path, snapshot.content_hash, snapshot.content, snapshot.line_count, now
        )
        self._sessions.record_seen(self.session_id, abs_path, snapshot.content_hash, now)
        return FileReadResult(
            cached=False,
            content=snapshot.content,
            hash=snapshot.content_hash,
            total_lines=snapshot.line_count,
        )

    def _unchanged(self, snapshot: FileSnapshot, now: int) -> FileReadResult:
        saved = estimate_tokens(snapshot.content)
        self._stats.add_tokens_saved(self.session_id, saved)
        self._sessions.record_seen(
            self.session_id, str(snapshot.path), snapshot.content_hash, now
        )
        logger.debug(f"Cache HIT: {snapshot.path} ({saved} tokens saved)")
        return FileReadResult(
            cached=True,
            content=f"[{SUMMARY_TAG}: unchanged, {snapshot.line_count} lines, {saved} tokens saved]",
            hash=snapshot.content_hash,
            lines_changed=0,
            total_lines=snapshot.line_count,
        )

    def _changed(
        self,
        snapshot: FileSnapshot,
        last_hash: str,
        label: str,
        now: int,
    ) -> FileReadResult:
        old_content = self._versions.get_version(str(snapshot.path), last_hash)
        fallback = self._remember(snapshot, now)

        if old_content is None:
            logger.debug(f"Cache FALLBACK: {snapshot.path} (version {last_hash} no longer stored)")
            return fallback

        result = compute_diff(old_content, snapshot.content, label)
        if not result.has_changes:
            logger.debug(f"Cache FALLBACK: {snapshot.path} (hash changed without line changes)")
            return fallback

        saved = max(0, estimate_tokens(snapshot.content) - estimate_tokens(result.diff))
        self._stats.add_tokens_saved(self.session_id, saved)
        logger.debug(
            f"Cache DIFF: {snapshot.path} ({result.lines_changed} lines changed, {saved} tokens saved)"
        )
        return FileReadResult(
            cached=True,
            content=result.diff,
            hash=snapshot.content_hash,
            diff=result.diff,
            lines_changed=result.lines_changed,
            total_lines=snapshot.line_count,
        )

    async def read_files(self, paths: List[Union[str, Path]]) -> List[BatchReadItem]:
        """
        Read several files in order.

        A failure on one path is recorded on its item and does not stop the
        remaining reads.

        Args:
            paths: Files to read

        Returns:
            One BatchReadItem per path, in input order
        """
        items = []
        for path in paths:
            try:
                items.append(BatchReadItem(path=str(path), result=await self.read_file(path)))
            except DiffCacheException as e:
                logger.debug(f"Batch read failed for {path}: {e.message}")
                items.append(BatchReadItem(path=str(path), error=e.message))
        return items

    async def on_path_changed(self, path: Union[str, Path]) -> None:
        """
        Advisory change hint.

        Staleness is decided by hash comparison on the next read, so there is
        nothing to update here.
        """
        logger.debug(f"Change hint for {path}")

    async def on_path_deleted(self, path: Union[str, Path]) -> None:
        """
        Forget a path: drop its versions and every session's pointer to it.

        The next read of the path by any session is a cold start.
        """
        await self.init()
        abs_path = str(Path(path).expanduser().resolve())
        async with self._db.transaction():
            versions = self._versions.purge_path(abs_path)
            pointers = self._sessions.purge_path(abs_path)
        logger.info(f"Purged {abs_path}: {versions} versions, {pointers} session pointers")

    async def get_stats(self, session_id: Optional[str] = None) -> CacheStats:
        """
        Get cache statistics.

        Args:
            session_id: Session to report savings for (default: this cache's session)

        Returns:
            CacheStats with files tracked and tokens saved
        """
        await self.init()
        async with self._db.transaction(immediate=False):
            files_tracked = self._versions.count_distinct_paths()
            total, session_total = self._stats.get_totals(session_id or self.session_id)
        return CacheStats(
            files_tracked=files_tracked,
            tokens_saved=total,
            session_tokens_saved=session_total,
        )

    async def clear(self) -> None:
        """
        Remove every version, pointer and counter.

        Warning:
            This affects all sessions sharing the database and is irreversible.
        """
        await self.init()
        async with self._db.transaction():
            self._versions.clear()
            self._sessions.clear()
            self._stats.reset_all()
        logger.info("Cache cleared")

    def close(self) -> None:
        """Close the database connection. Safe to call repeatedly."""
        self._db.close()

    async def __aenter__(self) -> "FileCache":
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.close()
