"""
Tests for concurrent reads.

These tests verify that the check-then-update sequence of a read is atomic
per (session, path) and that savings counters never lose increments.
"""

import asyncio
import tempfile
from pathlib import Path

import pytest

from diffcache.cache import FileCache, estimate_tokens
from diffcache.store import Database

CONTENT = "def handler(event):\n    return event\n"


@pytest.fixture
def temp_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
async def database(temp_dir):
    db = Database(temp_dir / "cache.db")
    await db.init()
    yield db
    db.close()


@pytest.fixture
def sample_file(temp_dir):
    path = temp_dir / "handler.py"
    path.write_text(CONTENT)
    return path


class TestSameSession:
    """Concurrent reads of one path by one session."""

    @pytest.mark.asyncio
    async def test_exactly_one_cold_start(self, database, sample_file):
        cache = FileCache(database, "s1")

        results = await asyncio.gather(*[cache.read_file(sample_file) for _ in range(10)])

        cold = [r for r in results if not r.cached]
        assert len(cold) == 1
        assert all(r.lines_changed == 0 for r in results if r.cached)

    @pytest.mark.asyncio
    async def test_no_double_counted_savings(self, database, sample_file):
        cache = FileCache(database, "s1")

        await asyncio.gather(*[cache.read_file(sample_file) for _ in range(10)])

        stats = await cache.get_stats()
        assert stats.session_tokens_saved == 9 * estimate_tokens(CONTENT)
        assert stats.tokens_saved == stats.session_tokens_saved

    @pytest.mark.asyncio
    async def test_pointer_matches_delivered_content(self, database, sample_file):
        """Test that after concurrent reads the next read compares against the last hash."""
        cache = FileCache(database, "s1")
        results = await asyncio.gather(*[cache.read_file(sample_file) for _ in range(5)])

        follow_up = await cache.read_file(sample_file)

        assert follow_up.cached is True
        assert follow_up.hash == results[0].hash


class TestManySessions:
    """Concurrent reads from independent sessions."""

    @pytest.mark.asyncio
    async def test_every_session_starts_cold(self, database, sample_file):
        caches = [FileCache(database, f"session-{i}") for i in range(8)]

        results = await asyncio.gather(*[c.read_file(sample_file) for c in caches])

        assert all(not r.cached for r in results)

    @pytest.mark.asyncio
    async def test_global_counter_has_no_lost_updates(self, database, temp_dir):
        """Test that sessions reading disjoint paths all land in the global total."""
        caches = []
        for i in range(6):
            path = temp_dir / f"file_{i}.txt"
            path.write_text(f"content {i}\n" * (i + 1))
            caches.append((FileCache(database, f"s{i}"), path))

        for cache, path in caches:
            await cache.read_file(path)
        await asyncio.gather(*[cache.read_file(path) for cache, path in caches for _ in range(3)])

        expected = sum(3 * estimate_tokens(path.read_text()) for _, path in caches)
        stats = await caches[0][0].get_stats()
        assert stats.tokens_saved == expected
        assert stats.files_tracked == 6

    @pytest.mark.asyncio
    async def test_concurrent_purge_and_reads(self, database, sample_file):
        """Test that a purge racing with reads leaves every session consistent."""
        caches = [FileCache(database, f"s{i}") for i in range(4)]
        for cache in caches:
            await cache.read_file(sample_file)

        await asyncio.gather(
            caches[0].on_path_deleted(sample_file),
            *[cache.read_file(sample_file) for cache in caches],
        )

        for cache in caches:
            await cache.read_file(sample_file)
            result = await cache.read_file(sample_file)
            assert result.cached is True
            assert result.lines_changed == 0
