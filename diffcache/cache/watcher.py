"""
File change watcher feeding advisory hints to the cache.

A watchdog observer thread reports filesystem events. Events are passed to
the event loop through an asyncio.Queue, debounced per path and finally
delivered to the cache as "changed" or "deleted" signals. Delivery is best
effort: the cache never depends on these signals for correctness, so every
error on this path is logged and dropped.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Union

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from diffcache.interfaces.cache import IFileCache

logger = logging.getLogger(__name__)

# Directories whose contents are never reported
IGNORED_NAMES = {
    '__pycache__', 'node_modules', 'venv', 'dist', 'build', 'target',
}


def is_ignored(path: Union[str, Path], root: Union[str, Path]) -> bool:
    """
    Whether an event path should be dropped.

    A path is ignored when any component below the watched root is hidden
    (starts with ".") or is one of IGNORED_NAMES.
    """
    try:
        relative = Path(path).relative_to(root)
    except ValueError:
        relative = Path(path)
    return any(part.startswith(".") or part in IGNORED_NAMES for part in relative.parts)


class _ChangeHandler(FileSystemEventHandler):
    """Forwards non-ignored file events of one root to the watcher."""

    def __init__(self, watcher: "FileWatcher", root: Path):
        self._watcher = watcher
        self._root = root

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type in ("opened", "closed_no_write"):
            return
        paths = [os.fsdecode(event.src_path)]
        dest = getattr(event, "dest_path", "")
        if dest:
            paths.append(os.fsdecode(dest))
        for path in paths:
            if not is_ignored(path, self._root):
                self._watcher.notify(path)


class FileWatcher:
    """
    Debounced, advisory change notifications for a cache.

    Rapid repeated events for the same path collapse into one delivery
    debounce_ms after the last event. At delivery time the path is checked:
    if it still exists the cache gets on_path_changed, otherwise
    on_path_deleted.

    Example:
        >>> watcher = FileWatcher(cache, debounce_ms=100)
        >>> watcher.watch([Path.cwd()])   # inside a running event loop
        >>> ...
        >>> watcher.close()
    """

    def __init__(self, cache: IFileCache, debounce_ms: int = 100):
        """
        Args:
            cache: Cache receiving the change and delete signals
            debounce_ms: Quiet period per path before a signal is delivered
        """
        self._cache = cache
        self._debounce = debounce_ms / 1000
        self._observers: List[Observer] = []
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._queue: Optional[asyncio.Queue] = None
        self._task: Optional[asyncio.Task] = None
        self._timers: Dict[str, asyncio.TimerHandle] = {}
        self._dispatches: Set[asyncio.Task] = set()
        self._closed = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """
        Start the dispatch loop on the running event loop. Idempotent.

        Raises:
            RuntimeError: If called outside a running event loop
        """
        if self.running:
            return
        self._closed = False
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._task = self._loop.create_task(self._run())

    def watch(self, paths: Iterable[Union[str, Path]]) -> None:
        """
        Watch directories recursively.

        Args:
            paths: Root directories to observe
        """
        self.start()
        for p in paths:
            root = Path(p).resolve()
            observer = Observer()
            observer.schedule(_ChangeHandler(self, root), str(root), recursive=True)
            observer.start()
            self._observers.append(observer)
            logger.info(f"Watching {root} for changes")

    def notify(self, path: Union[str, Path]) -> None:
        """
        Report a possible change of path. Safe to call from any thread.

        Events arriving before start() or after close() are dropped.
        """
        if self._closed or self._loop is None or self._queue is None:
            return
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, str(path))
        except RuntimeError:
            # Loop already closed
            logger.debug(f"Dropping change event for {path}")

    async def _run(self) -> None:
        while True:
            path = await self._queue.get()
            existing = self._timers.pop(path, None)
            if existing is not None:
                existing.cancel()
            self._timers[path] = self._loop.call_later(self._debounce, self._fire, path)

    def _fire(self, path: str) -> None:
        self._timers.pop(path, None)
        task = self._loop.create_task(self._dispatch(path))
        self._dispatches.add(task)
        task.add_done_callback(self._dispatches.discard)

    async def _dispatch(self, path: str) -> None:
        try:
            if os.path.exists(path):
                await self._cache.on_path_changed(path)
            else:
                await self._cache.on_path_deleted(path)
        except Exception:
            logger.warning(f"Ignoring error while handling change of {path}", exc_info=True)

    @property
    def pending(self) -> int:
        """Signals waiting for their debounce window or still being delivered."""
        return len(self._timers) + len(self._dispatches)

    def close(self) -> None:
        """Stop observers, cancel pending signals and the dispatch loop. Safe to call repeatedly."""
        self._closed = True
        for observer in self._observers:
            observer.stop()
        for observer in self._observers:
            observer.join(timeout=1.0)
        self._observers = []

        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()

        for task in list(self._dispatches):
            task.cancel()
        self._dispatches.clear()

        if self._task is not None:
            self._task.cancel()
            self._task = None
