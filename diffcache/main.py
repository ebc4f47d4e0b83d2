"""
diffcache - FastAPI application

Serves the cached read tools to coding agents: reads of files an agent has
already seen come back as a one-line confirmation or as a diff instead of
the full content.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from diffcache import __version__
from diffcache.api.routes import cache_router
from diffcache.config import CacheConfig, get_settings
from diffcache.dependencies import reset_dependencies, set_file_cache
from diffcache.exceptions import DiffCacheException, cache_exception_handler
from diffcache.factories import create_cache

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    config = CacheConfig.from_settings(settings)
    cache, watcher = create_cache(config)
    set_file_cache(cache)
    try:
        await cache.init()
        logger.info(f"Starting diffcache (session {config.session_id})")
        if watcher is not None:
            watcher.watch(config.watch_paths)

        yield
    finally:
        logger.info("Shutting down diffcache")
        if watcher is not None:
            watcher.close()
        reset_dependencies()


# Create FastAPI application
app = FastAPI(
    title="diffcache",
    description="""
## Overview

File reads for coding agents with per-session caching.

- **First read** in a session returns the full file.
- **Unchanged file** returns a short confirmation instead of the content.
- **Changed file** returns only a unified diff against what the session saw.

Use `/api/status` to see how many tokens have been saved.
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_exception_handler(DiffCacheException, cache_exception_handler)

# Include routers
app.include_router(cache_router, prefix="/api")


@app.get("/", tags=["root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": "diffcache",
        "version": __version__,
        "description": "Agent file cache with diff tracking",
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/health", tags=["health"])
async def health():
    """Health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "db_path": str(settings.db_path),
        "watch_enabled": settings.watch_enabled,
    }


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "diffcache.main:app",
        host=settings.host,
        port=settings.port,
    )
