"""Tests for dependency injection and the cache factory."""

from pathlib import Path

from diffcache.cache import FileCache, FileWatcher
from diffcache.config import CacheConfig
from diffcache.dependencies import (
    get_file_cache,
    get_settings,
    reset_dependencies,
    set_file_cache,
)
from diffcache.factories import create_cache
from diffcache.store import Database


class TestCreateCache:
    """Tests for create_cache()."""

    def test_without_watch_paths(self, tmp_path):
        cache, watcher = create_cache(CacheConfig(db_path=tmp_path / "c.db", session_id="s"))

        assert isinstance(cache, FileCache)
        assert cache.session_id == "s"
        assert watcher is None

    def test_with_watch_paths(self, tmp_path):
        config = CacheConfig(db_path=tmp_path / "c.db", watch_paths=[tmp_path])

        cache, watcher = create_cache(config)

        assert isinstance(watcher, FileWatcher)
        assert watcher.running is False


class TestFileCacheDependency:
    """Tests for get_file_cache() and reset_dependencies()."""

    def test_set_and_get(self, tmp_path):
        cache = FileCache(Database(tmp_path / "c.db"), "server")
        set_file_cache(cache)
        try:
            assert get_file_cache() is cache
        finally:
            reset_dependencies()

    def test_lazy_creation_from_settings(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DIFFCACHE_CACHE_DIR", str(tmp_path))
        reset_dependencies()
        try:
            cache = get_file_cache()
            assert cache is get_file_cache()
            assert Path(cache.database.db_path) == (tmp_path / "cache.db").resolve()
        finally:
            reset_dependencies()

    async def test_reset_closes_cache(self, tmp_path):
        cache = FileCache(Database(tmp_path / "c.db"), "server")
        await cache.init()
        set_file_cache(cache)

        reset_dependencies()

        assert cache.database.initialized is False

    def test_reset_clears_settings(self):
        settings = get_settings()
        reset_dependencies()
        assert get_settings() is not settings
