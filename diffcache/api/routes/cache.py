"""
Cache tool API routes.

These endpoints are the tool surface agents call instead of reading files
directly: single and batched cached reads, statistics and a full reset.
"""

import logging
from dataclasses import asdict
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from diffcache.cache.file_cache import FileCache
from diffcache.cache.render import render_batch, render_read
from diffcache.dependencies import get_file_cache

logger = logging.getLogger(__name__)

router = APIRouter(tags=["cache"])


class ReadRequest(BaseModel):
    """Request to read one file through the cache."""
    path: str = Field(..., min_length=1, description="Path to the file to read")
    session_id: Optional[str] = Field(
        None, description="Session to read for (default: the server session)"
    )


class ReadResponse(BaseModel):
    """Result of a cached read plus the rendered text for the agent."""
    path: str
    cached: bool
    hash: str
    content: str
    diff: Optional[str] = None
    lines_changed: Optional[int] = None
    total_lines: Optional[int] = None
    text: str


class BatchReadRequest(BaseModel):
    """Request to read several files at once."""
    paths: List[str] = Field(..., min_length=1, description="Paths to the files to read")
    session_id: Optional[str] = None


class BatchReadEntry(BaseModel):
    """Per-file outcome of a batch read."""
    path: str
    cached: Optional[bool] = None
    lines_changed: Optional[int] = None
    total_lines: Optional[int] = None
    error: Optional[str] = None


class BatchReadResponse(BaseModel):
    """Response for a batch read."""
    items: List[BatchReadEntry]
    text: str


class StatsResponse(BaseModel):
    """Cache statistics."""
    session_id: str
    files_tracked: int
    tokens_saved: int
    session_tokens_saved: int


class ClearResponse(BaseModel):
    """Response for a cache reset."""
    cleared: bool
    message: str


def _for_session(cache: FileCache, session_id: Optional[str]) -> FileCache:
    return cache.for_session(session_id) if session_id else cache


@router.post("/read", response_model=ReadResponse)
async def read_file(
    request: ReadRequest,
    cache: FileCache = Depends(get_file_cache),
):
    """
    Read a file with caching.

    The first read in a session returns the full content. Later reads return
    a short confirmation when the file is unchanged, or only the diff when it
    changed.
    """
    session_cache = _for_session(cache, request.session_id)
    result = await session_cache.read_file(request.path)

    session_saved = None
    if result.cached:
        session_saved = (await session_cache.get_stats()).session_tokens_saved

    return ReadResponse(
        path=request.path,
        text=render_read(result, session_saved),
        **asdict(result),
    )


@router.post("/read-batch", response_model=BatchReadResponse)
async def read_files(
    request: BatchReadRequest,
    cache: FileCache = Depends(get_file_cache),
):
    """
    Read several files at once with caching.

    Errors on individual files are reported inline and do not fail the batch.
    """
    session_cache = _for_session(cache, request.session_id)
    items = await session_cache.read_files(request.paths)
    stats = await session_cache.get_stats()

    entries = [
        BatchReadEntry(
            path=item.path,
            cached=item.result.cached if item.result else None,
            lines_changed=item.result.lines_changed if item.result else None,
            total_lines=item.result.total_lines if item.result else None,
            error=item.error,
        )
        for item in items
    ]
    return BatchReadResponse(
        items=entries,
        text=render_batch(items, stats.session_tokens_saved),
    )


@router.get("/status", response_model=StatsResponse)
async def cache_status(
    session_id: Optional[str] = Query(None, description="Session to report savings for"),
    cache: FileCache = Depends(get_file_cache),
):
    """Show files tracked and tokens saved for a session and overall."""
    stats = await cache.get_stats(session_id)
    return StatsResponse(
        session_id=session_id or cache.session_id,
        **asdict(stats),
    )


@router.post("/clear", response_model=ClearResponse)
async def cache_clear(cache: FileCache = Depends(get_file_cache)):
    """Clear all cached data for every session."""
    await cache.clear()
    logger.info("Cache cleared through the API")
    return ClearResponse(cleared=True, message="Cache cleared.")
