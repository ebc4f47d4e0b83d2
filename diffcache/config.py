"""
Configuration module for diffcache.
Uses pydantic-settings for environment variable management and a frozen
dataclass for the values injected into the cache components.
"""

import uuid
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="DIFFCACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage
    cache_dir: str = ".diffcache"
    db_name: str = "cache.db"
    busy_timeout_ms: int = 5000

    # Change watcher
    watch_enabled: bool = True
    watch_paths: List[str] = []  # empty = current working directory
    debounce_ms: int = 100

    # Server Configuration
    host: str = "127.0.0.1"
    port: int = 8765
    log_level: str = "INFO"

    @property
    def db_path(self) -> Path:
        """Return the database file as an absolute Path."""
        return (Path(self.cache_dir) / self.db_name).resolve()

    @property
    def resolved_watch_paths(self) -> List[Path]:
        """Watch roots as absolute paths, defaulting to the working directory."""
        if not self.watch_paths:
            return [Path.cwd()]
        return [Path(p).resolve() for p in self.watch_paths]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def new_session_id() -> str:
    """Generate an opaque session identifier."""
    return str(uuid.uuid4())


@dataclass(frozen=True)
class CacheConfig:
    """Cache construction parameters."""

    db_path: Path
    session_id: str = field(default_factory=new_session_id)
    watch_paths: List[Path] = field(default_factory=list)
    debounce_ms: int = 100
    busy_timeout_ms: int = 5000

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        session_id: Optional[str] = None,
    ) -> "CacheConfig":
        """Create config from application settings."""
        return cls(
            db_path=settings.db_path,
            session_id=session_id or new_session_id(),
            watch_paths=settings.resolved_watch_paths if settings.watch_enabled else [],
            debounce_ms=settings.debounce_ms,
            busy_timeout_ms=settings.busy_timeout_ms,
        )
