"""
Cache interfaces for the read cache.

This module defines interfaces for all cache components:
- IContentStore: Content-addressed file version storage
- ISessionTracker: Per-session last-seen pointers
- IStatsAccumulator: Token savings counters
- IFileCache: The read entry point composing the three stores

Store methods are synchronous and run against the shared database
connection. Callers that need several of them to act as one unit wrap
them in Database.transaction().
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Tuple, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from diffcache.cache.file_cache import BatchReadItem, CacheStats, FileReadResult


class IContentStore(ABC):
    """
    Abstract interface for the content-addressed version table.

    Implementations:
        - ContentStore: SQLite file_versions table

    Example:
        ```python
        store.put_version("/src/app.py", "9f86d081884c7d65", text, 42)
        assert store.get_version("/src/app.py", "9f86d081884c7d65") == text
        ```
    """

    @abstractmethod
    def put_version(
        self,
        path: str,
        content_hash: str,
        content: str,
        line_count: int,
        created_at: Optional[int] = None,
    ) -> None:
        """
        Insert a version if (path, content_hash) is not stored yet.

        Args:
            path: Absolute file path
            content_hash: Digest of content
            content: Full file text
            line_count: Number of lines in content
            created_at: Epoch milliseconds (defaults to now)
        """
        pass

    @abstractmethod
    def get_version(self, path: str, content_hash: str) -> Optional[str]:
        """
        Fetch the content of a stored version.

        Returns:
            The content if the version exists, None otherwise
        """
        pass

    @abstractmethod
    def count_distinct_paths(self) -> int:
        """Number of paths with at least one retained version."""
        pass

    @abstractmethod
    def purge_path(self, path: str) -> int:
        """
        Delete every version of a path.

        Returns:
            Number of versions removed
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Delete all versions."""
        pass


class ISessionTracker(ABC):
    """
    Abstract interface for per-session read pointers.

    Each (session_id, path) pair has at most one pointer naming the hash that
    session was last shown.
    """

    @abstractmethod
    def get_last_seen(self, session_id: str, path: str) -> Optional[str]:
        """Hash last seen by the session for the path, or None."""
        pass

    @abstractmethod
    def record_seen(
        self,
        session_id: str,
        path: str,
        content_hash: str,
        timestamp: int,
    ) -> None:
        """Create or replace the pointer for (session_id, path)."""
        pass

    @abstractmethod
    def purge_path(self, path: str) -> int:
        """
        Delete the pointers of every session for a path.

        Returns:
            Number of pointers removed
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Delete all pointers."""
        pass


class IStatsAccumulator(ABC):
    """Abstract interface for the token savings counters."""

    @abstractmethod
    def add_tokens_saved(self, session_id: str, amount: int) -> None:
        """
        Add a non-negative amount to the global and session counters.

        Raises:
            ValidationException: If amount is negative
        """
        pass

    @abstractmethod
    def get_totals(self, session_id: str) -> Tuple[int, int]:
        """
        Returns:
            Tuple of (global total, session total)
        """
        pass

    @abstractmethod
    def reset_all(self) -> None:
        """Zero the global counter and drop every session counter."""
        pass


class IFileCache(ABC):
    """
    Abstract interface for the session-scoped read cache.

    Implementations:
        - FileCache: SQLite-backed cache returning full content, an unchanged
          summary or a unified diff depending on what the session saw before

    Example:
        ```python
        async with FileCache.from_config(config) as cache:
            first = await cache.read_file("README.md")    # full content
            second = await cache.read_file("README.md")   # unchanged summary
        ```
    """

    @abstractmethod
    async def init(self) -> None:
        """Open the store. Idempotent."""
        pass

    @abstractmethod
    async def read_file(self, path: Union[str, Path]) -> "FileReadResult":
        """Read a file through the cache for the bound session."""
        pass

    @abstractmethod
    async def read_files(self, paths: List[Union[str, Path]]) -> List["BatchReadItem"]:
        """Read several files, capturing per-path failures."""
        pass

    @abstractmethod
    async def on_path_changed(self, path: Union[str, Path]) -> None:
        """Advisory change hint from a watcher."""
        pass

    @abstractmethod
    async def on_path_deleted(self, path: Union[str, Path]) -> None:
        """Forget every version and pointer of a path."""
        pass

    @abstractmethod
    async def get_stats(self, session_id: Optional[str] = None) -> "CacheStats":
        """Files tracked and tokens saved."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Wipe all cached data and counters."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the store connection."""
        pass
