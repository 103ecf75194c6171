"""Watch source globs and re-run dependent tasks on change.

State machine:
    IDLE --watch()--> WATCHING --event--> WATCHING

watchdog delivers events on its own thread; matching events are handed
to the asyncio loop that called watch(), where dispatch() re-runs the
tasks registered against the glob and then notifies reload clients.
Every event triggers its own run: bursts are not coalesced.
"""

import asyncio
import logging
import os
from enum import Enum
from typing import Any, Callable, Optional, Set

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from .engine import TaskEngine
from .exceptions import WatchSetupError
from .index import SourceIndex
from .patterns import compile_glob, is_recursive, static_prefix


logger = logging.getLogger(__name__)

# opened/closed events are ignored: pipelines read the very files we watch
_CHANGE_EVENTS = {
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
}


class WatchState(Enum):
    IDLE = "idle"
    WATCHING = "watching"


class GlobEventHandler(FileSystemEventHandler):
    """Forward file events whose path matches one glob."""

    def __init__(self, glob: str, on_match: Callable[[str, str], None]):
        super().__init__()
        self.glob = glob
        self.on_match = on_match
        self._regex = compile_glob(glob)

    def matches(self, path: str) -> bool:
        return self._regex.match(path) is not None

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in _CHANGE_EVENTS:
            return
        path = event.dest_path if event.event_type == EVENT_TYPE_MOVED else event.src_path
        path = os.fsdecode(path)
        if self.matches(path):
            self.on_match(self.glob, path)


class WatchCoordinator:
    """One watch per indexed glob, re-running its tasks on change.

    Example:
        coordinator = WatchCoordinator(registry.source_index, engine, notifier)
        coordinator.watch()   # from inside the running event loop
    """

    def __init__(self, source_index: SourceIndex, engine: TaskEngine, notifier: Any):
        self.source_index = source_index
        self.engine = engine
        self.notifier = notifier
        self.state = WatchState.IDLE
        self._observer: Optional[Observer] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._pending: Set['asyncio.Task[None]'] = set()

    @property
    def watching(self) -> bool:
        return self.state is WatchState.WATCHING

    def watch(self) -> bool:
        """Start watching every glob in the source index.

        Must be called from the running event loop. A second call is
        rejected with a warning.

        Returns:
            True if watching started on this call
        """
        if self.watching:
            logger.warning("watch() called more than once, have you also called live()?")
            return False
        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("%s", WatchSetupError("watch() needs a running event loop"))
            return False

        observer = Observer()
        for glob, _ in self.source_index.items():
            try:
                self._schedule(observer, glob)
            except (WatchSetupError, OSError) as e:
                logger.warning("cannot watch %s: %s", glob, e)
        observer.start()

        self._observer = observer
        self.state = WatchState.WATCHING
        return True

    def _schedule(self, observer: Observer, glob: str) -> None:
        directory = static_prefix(glob) or '.'
        if not os.path.isdir(directory):
            raise WatchSetupError(f"directory {directory} does not exist")
        handler = GlobEventHandler(glob, self._on_match)
        observer.schedule(handler, directory, recursive=is_recursive(glob))
        logger.info("watching %s", glob)

    def _on_match(self, glob: str, path: str) -> None:
        # watchdog thread
        self._loop.call_soon_threadsafe(self._spawn, glob, path)

    def _spawn(self, glob: str, path: str) -> None:
        task = self._loop.create_task(self.dispatch(glob, path))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def dispatch(self, glob: str, filepath: str) -> None:
        """Re-run the tasks registered against glob, then notify clients."""
        task_names = self.source_index.tasks_for(glob)
        logger.info("%s changed, running %s", filepath, ', '.join(task_names))
        try:
            await self.engine.start(task_names)
        except Exception as e:
            logger.error("rebuild after %s failed: %s", filepath, e)
        try:
            await self.notifier.notify([filepath])
        except Exception as e:
            logger.error("reload notification for %s failed: %s", filepath, e)

    async def close(self) -> None:
        """Stop the observer, then let in-flight rebuilds finish."""
        if self._observer is not None:
            observer, self._observer = self._observer, None
            observer.stop()
            await asyncio.to_thread(observer.join)
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        self.state = WatchState.IDLE
