"""
Demo script walking through the diffcache read lifecycle.

This script demonstrates:
1. A cold read returning the full file
2. An unchanged read returning a one-line summary
3. A changed read returning only the diff
4. Session isolation and savings statistics
"""

import asyncio
import tempfile
from pathlib import Path

from diffcache.cache import FileCache, render_read
from diffcache.store import Database


async def demo_read_lifecycle(workdir: Path):
    """Demonstrate cold, unchanged and changed reads for one session."""
    print("=" * 60)
    print("Demo 1: Read Lifecycle")
    print("=" * 60)

    target = workdir / "service.py"
    target.write_text(
        "def start():\n"
        "    print('starting')\n"
        "\n"
        "def stop():\n"
        "    print('stopping')\n"
    )

    async with FileCache(Database(workdir / "cache" / "cache.db"), "demo") as cache:
        print("\n1. First read (cold start):")
        first = await cache.read_file(target)
        print(f"   cached={first.cached}, lines={first.total_lines}")

        print("\n2. Second read (unchanged):")
        second = await cache.read_file(target)
        print(f"   {second.content}")

        print("\n3. Edit the file and read again (diff):")
        target.write_text(target.read_text().replace("'stopping'", "'stopping now'"))
        third = await cache.read_file(target)
        stats = await cache.get_stats()
        print(render_read(third, stats.session_tokens_saved))


async def demo_sessions(workdir: Path):
    """Demonstrate that every session keeps its own read history."""
    print("\n" + "=" * 60)
    print("Demo 2: Session Isolation")
    print("=" * 60)

    target = workdir / "service.py"
    async with FileCache(Database(workdir / "cache" / "cache.db"), "demo") as cache:
        other = cache.for_session("reviewer")
        result = await other.read_file(target)
        print(f"\n   reviewer first read: cached={result.cached}")

        stats = await cache.get_stats()
        print(f"   Files tracked: {stats.files_tracked}")
        print(f"   Tokens saved (total): ~{stats.tokens_saved:,}")
        print(f"   Tokens saved (demo session): ~{stats.session_tokens_saved:,}")


async def main():
    with tempfile.TemporaryDirectory() as tmpdir:
        workdir = Path(tmpdir)
        await demo_read_lifecycle(workdir)
        await demo_sessions(workdir)


if __name__ == "__main__":
    asyncio.run(main())
