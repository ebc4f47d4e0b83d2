"""Tests for the SQLite store components."""

import sqlite3
import tempfile
from pathlib import Path

import pytest

from diffcache.exceptions import (
    NotInitializedException,
    StorageException,
    ValidationException,
)
from diffcache.store import (
    ContentStore,
    Database,
    SessionTracker,
    StatsAccumulator,
)


@pytest.fixture
async def database():
    """Create an initialized database in a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db = Database(Path(tmpdir) / "cache.db")
        await db.init()
        yield db
        db.close()


class TestDatabase:
    """Tests for Database lifecycle and transactions."""

    async def test_init_creates_schema(self, database):
        tables = {
            row[0]
            for row in database.connection.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table'"
            )
        }
        assert {"file_versions", "session_reads", "stats", "session_stats"} <= tables

    async def test_init_is_idempotent(self, database):
        """Test that repeated init() keeps the same connection."""
        conn = database.connection
        await database.init()
        await database.init()
        assert database.connection is conn
        assert database.initialized is True

    async def test_init_creates_parent_directories(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            db = Database(Path(tmpdir) / "nested" / "dir" / "cache.db")
            await db.init()
            assert (Path(tmpdir) / "nested" / "dir" / "cache.db").exists()
            db.close()

    async def test_connection_before_init_fails_fast(self):
        db = Database(":memory:")
        with pytest.raises(NotInitializedException):
            db.connection

    async def test_close_is_safe_without_init(self):
        db = Database(":memory:")
        db.close()
        db.close()
        assert db.initialized is False

    async def test_reopen_after_close(self):
        """Test that data persists across close and init."""
        with tempfile.TemporaryDirectory() as tmpdir:
            db = Database(Path(tmpdir) / "cache.db")
            await db.init()
            ContentStore(db).put_version("/a", "h1", "text", 1)
            db.close()

            await db.init()
            assert ContentStore(db).get_version("/a", "h1") == "text"
            db.close()

    async def test_transaction_commits(self, database):
        store = ContentStore(database)
        async with database.transaction():
            store.put_version("/a", "h1", "one", 1)
        assert store.get_version("/a", "h1") == "one"

    async def test_transaction_rolls_back_on_error(self, database):
        """Test that an exception inside the block discards its writes."""
        store = ContentStore(database)
        with pytest.raises(ValueError):
            async with database.transaction():
                store.put_version("/a", "h1", "one", 1)
                raise ValueError("boom")
        assert store.get_version("/a", "h1") is None
        assert database.connection.in_transaction is False

    async def test_sqlite_errors_become_storage_exceptions(self, database):
        with pytest.raises(StorageException) as exc_info:
            async with database.transaction() as conn:
                conn.execute("INSERT INTO no_such_table VALUES (1)")
        assert isinstance(exc_info.value.__cause__, sqlite3.Error)
        assert database.connection.in_transaction is False

    async def test_counters_survive_reopen(self, database):
        """Test that reopening an existing file keeps the counters."""
        StatsAccumulator(database).add_tokens_saved("s", 5)
        database.close()
        await database.init()
        assert StatsAccumulator(database).get_totals("s") == (5, 5)


class TestContentStore:
    """Tests for ContentStore."""

    async def test_put_and_get(self, database):
        store = ContentStore(database)
        store.put_version("/repo/a.py", "abc", "print(1)\n", 2)
        assert store.get_version("/repo/a.py", "abc") == "print(1)\n"

    async def test_get_missing(self, database):
        assert ContentStore(database).get_version("/repo/a.py", "nope") is None

    async def test_put_is_insert_if_absent(self, database):
        """Test that a second put with the same key keeps the original content."""
        store = ContentStore(database)
        store.put_version("/repo/a.py", "abc", "original", 1, created_at=100)
        store.put_version("/repo/a.py", "abc", "different", 9, created_at=200)

        rows = database.connection.execute(
            "SELECT content, lines, created_at FROM file_versions WHERE path = ?",
            ("/repo/a.py",),
        ).fetchall()
        assert rows == [("original", 1, 100)]
        assert store.get_version("/repo/a.py", "abc") == "original"

    async def test_versions_coexist(self, database):
        store = ContentStore(database)
        store.put_version("/repo/a.py", "h1", "v1", 1, created_at=1)
        store.put_version("/repo/a.py", "h2", "v2", 1, created_at=2)
        assert store.get_version("/repo/a.py", "h1") == "v1"
        assert store.get_version("/repo/a.py", "h2") == "v2"
        assert store.count_distinct_paths() == 1

    async def test_count_distinct_paths(self, database):
        store = ContentStore(database)
        assert store.count_distinct_paths() == 0
        store.put_version("/a", "h1", "1", 1)
        store.put_version("/a", "h2", "2", 1)
        store.put_version("/b", "h1", "1", 1)
        assert store.count_distinct_paths() == 2

    async def test_purge_path(self, database):
        store = ContentStore(database)
        store.put_version("/a", "h1", "1", 1)
        store.put_version("/a", "h2", "2", 1)
        store.put_version("/b", "h1", "1", 1)

        assert store.purge_path("/a") == 2
        assert store.get_version("/a", "h1") is None
        assert store.get_version("/a", "h2") is None
        assert store.get_version("/b", "h1") == "1"

    async def test_clear(self, database):
        store = ContentStore(database)
        store.put_version("/a", "h1", "1", 1)
        store.clear()
        assert store.count_distinct_paths() == 0


class TestSessionTracker:
    """Tests for SessionTracker."""

    async def test_unknown_pointer(self, database):
        tracker = SessionTracker(database)
        assert tracker.get_last_seen("s1", "/a") is None

    async def test_record_and_replace(self, database):
        """Test that record_seen keeps exactly one row per (session, path)."""
        tracker = SessionTracker(database)
        tracker.record_seen("s1", "/a", "h1", 10)
        tracker.record_seen("s1", "/a", "h2", 20)

        assert tracker.get_last_seen("s1", "/a") == "h2"
        rows = database.connection.execute(
            "SELECT hash, read_at FROM session_reads WHERE session_id = 's1'"
        ).fetchall()
        assert rows == [("h2", 20)]

    async def test_sessions_are_independent(self, database):
        tracker = SessionTracker(database)
        tracker.record_seen("s1", "/a", "h1", 10)
        tracker.record_seen("s2", "/a", "h2", 10)
        assert tracker.get_last_seen("s1", "/a") == "h1"
        assert tracker.get_last_seen("s2", "/a") == "h2"

    async def test_purge_path_across_sessions(self, database):
        tracker = SessionTracker(database)
        tracker.record_seen("s1", "/a", "h1", 10)
        tracker.record_seen("s2", "/a", "h1", 10)
        tracker.record_seen("s1", "/b", "h1", 10)

        assert tracker.purge_path("/a") == 2
        assert tracker.get_last_seen("s1", "/a") is None
        assert tracker.get_last_seen("s2", "/a") is None
        assert tracker.get_last_seen("s1", "/b") == "h1"


class TestStatsAccumulator:
    """Tests for StatsAccumulator."""

    async def test_starts_at_zero(self, database):
        assert StatsAccumulator(database).get_totals("s1") == (0, 0)

    async def test_add_updates_global_and_session(self, database):
        stats = StatsAccumulator(database)
        stats.add_tokens_saved("s1", 10)
        stats.add_tokens_saved("s2", 5)
        stats.add_tokens_saved("s1", 1)

        assert stats.get_totals("s1") == (16, 11)
        assert stats.get_totals("s2") == (16, 5)

    async def test_zero_is_allowed(self, database):
        stats = StatsAccumulator(database)
        stats.add_tokens_saved("s1", 0)
        assert stats.get_totals("s1") == (0, 0)

    async def test_negative_amount_rejected(self, database):
        """Test that counters can never decrease through add_tokens_saved."""
        stats = StatsAccumulator(database)
        stats.add_tokens_saved("s1", 3)
        with pytest.raises(ValidationException):
            stats.add_tokens_saved("s1", -1)
        assert stats.get_totals("s1") == (3, 3)

    async def test_reset_all(self, database):
        stats = StatsAccumulator(database)
        stats.add_tokens_saved("s1", 10)
        stats.reset_all()
        assert stats.get_totals("s1") == (0, 0)
        stats.add_tokens_saved("s1", 2)
        assert stats.get_totals("s1") == (2, 2)
