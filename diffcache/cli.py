"""
Command-line interface for diffcache.

This module provides CLI commands including:
- serve: Run the HTTP tool server
- status: Display cache statistics
- clear: Clear all cached data
- read: Read one file through the cache
"""

import asyncio
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import click

from diffcache.cache import FileCache, render_read
from diffcache.config import CacheConfig, get_settings
from diffcache.exceptions import DiffCacheException

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

STATUS_SESSION = "cli-status"
DEFAULT_READ_SESSION = "cli"


def _db_path(cache_dir: Optional[str]) -> Path:
    settings = get_settings()
    if cache_dir:
        return (Path(cache_dir) / settings.db_name).resolve()
    return settings.db_path


def _open_cache(cache_dir: Optional[str], session_id: str) -> FileCache:
    settings = get_settings()
    config = CacheConfig(
        db_path=_db_path(cache_dir),
        session_id=session_id,
        busy_timeout_ms=settings.busy_timeout_ms,
    )
    return FileCache.from_config(config)


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def cli(verbose: bool):
    """
    diffcache - Agent file cache with diff tracking.

    Serves cached file reads and manages the cache database.
    """
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Verbose logging enabled")


@cli.command('serve')
@click.option('--host', default=None, help='Bind address (default: from config)')
@click.option('--port', default=None, type=int, help='Port (default: from config)')
def serve_command(host: Optional[str], port: Optional[int]):
    """
    Start the HTTP tool server.

    Examples:

        \b
        # Serve on the configured host and port
        diffcache serve

        \b
        # Serve on a custom port
        diffcache serve --port 9000
    """
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "diffcache.main:app",
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower(),
    )


@cli.command('status')
@click.option(
    '--cache-dir',
    type=str,
    default=None,
    help='Custom cache directory (default: from config)'
)
@click.option(
    '--json',
    'output_json',
    is_flag=True,
    help='Output statistics as JSON'
)
def status_command(cache_dir: Optional[str], output_json: bool):
    """
    Display cache statistics.

    Examples:

        \b
        # Display cache statistics
        diffcache status

        \b
        # Output as JSON
        diffcache status --json
    """
    db_path = _db_path(cache_dir)
    if not db_path.exists():
        click.echo("No diffcache database found. Run 'diffcache serve' to start caching.")
        return

    async def run_status():
        cache = _open_cache(cache_dir, STATUS_SESSION)
        try:
            return await cache.get_stats()
        finally:
            cache.close()

    try:
        stats = asyncio.run(run_status())
    except Exception as e:
        click.echo(click.style(f"Error getting cache stats: {e}", fg='red'), err=True)
        logger.exception("Failed to get cache stats")
        raise SystemExit(1)

    if output_json:
        click.echo(json.dumps({
            "db_path": str(db_path),
            "files_tracked": stats.files_tracked,
            "tokens_saved": stats.tokens_saved,
        }, indent=2))
        return

    click.echo(click.style("diffcache status:", fg='blue', bold=True))
    click.echo(f"  Files tracked:          {stats.files_tracked}")
    click.echo(f"  Tokens saved (total):   ~{stats.tokens_saved:,}")
    click.echo(f"  Database:               {db_path}")


@cli.command('clear')
@click.option(
    '--cache-dir',
    type=str,
    default=None,
    help='Custom cache directory (default: from config)'
)
@click.option(
    '--force', '-f',
    is_flag=True,
    help='Skip confirmation prompt'
)
def clear_command(cache_dir: Optional[str], force: bool):
    """
    Clear all cached data.

    This operation is irreversible and removes every stored file version,
    every session's read history and all savings counters.

    Examples:

        \b
        # Clear cache with confirmation
        diffcache clear

        \b
        # Clear cache without confirmation
        diffcache clear --force
    """
    if not force:
        if not click.confirm("Are you sure you want to clear ALL cache data?"):
            click.echo("Operation cancelled.")
            return

    async def run_clear():
        cache = _open_cache(cache_dir, STATUS_SESSION)
        try:
            await cache.clear()
            return await cache.get_stats()
        finally:
            cache.close()

    try:
        stats = asyncio.run(run_clear())
    except Exception as e:
        click.echo(click.style(f"Error clearing cache: {e}", fg='red'), err=True)
        logger.exception("Cache clear failed")
        raise SystemExit(1)

    click.echo(click.style("Cache cleared.", fg='green', bold=True))
    click.echo(f"Files tracked: {stats.files_tracked}")


@cli.command('read')
@click.argument('path', type=click.Path(path_type=Path))
@click.option(
    '--session', '-s',
    'session_id',
    default=DEFAULT_READ_SESSION,
    show_default=True,
    help='Session to read for'
)
@click.option(
    '--cache-dir',
    type=str,
    default=None,
    help='Custom cache directory (default: from config)'
)
@click.option(
    '--json',
    'output_json',
    is_flag=True,
    help='Output the raw read result as JSON'
)
def read_command(path: Path, session_id: str, cache_dir: Optional[str], output_json: bool):
    """
    Read a file through the cache.

    Examples:

        \b
        # First read prints the file, later reads print a summary or diff
        diffcache read src/app.py

        \b
        # Read as a specific session
        diffcache read src/app.py --session agent-42
    """
    async def run_read():
        cache = _open_cache(cache_dir, session_id)
        try:
            result = await cache.read_file(path)
            stats = await cache.get_stats()
            return result, stats
        finally:
            cache.close()

    try:
        result, stats = asyncio.run(run_read())
    except DiffCacheException as e:
        click.echo(click.style(f"Error: {e.message}", fg='red'), err=True)
        logger.debug("Cached read failed", exc_info=True)
        raise SystemExit(1)

    if output_json:
        click.echo(json.dumps(asdict(result), indent=2))
        return

    session_saved = stats.session_tokens_saved if result.cached else None
    click.echo(render_read(result, session_saved))


if __name__ == '__main__':
    cli()
