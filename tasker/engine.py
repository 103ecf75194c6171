"""Task execution engine.

Holds the process-local task table and runs named tasks in order. Every
task is a callable: coroutine functions are awaited on the loop, plain
functions run in a worker thread so they cannot block file watching or
the reload endpoint.

Failures never propagate out of start(): each one is logged and
recorded in the RunResult, and the remaining tasks still run.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Set, Tuple

from .exceptions import TaskNotFound


logger = logging.getLogger(__name__)


@dataclass
class EngineTask:
    """A registered task.

    Attributes:
        name: Unique task name
        action: Zero-argument callable (plain or async)
        deps: Names of tasks to run first
    """
    name: str
    action: Callable[[], Any]
    deps: Tuple[str, ...] = ()


@dataclass
class RunResult:
    """Result of TaskEngine.start()."""

    executed: List[str] = field(default_factory=list)
    """Task names in the order they ran (dependencies included)."""

    failed: Dict[str, BaseException] = field(default_factory=dict)
    """Failures keyed by task name."""

    @property
    def succeeded(self) -> bool:
        """Return True if no task failed."""
        return not self.failed


class TaskEngine:
    """Task table plus sequential executor.

    Example:
        engine = TaskEngine()
        engine.task('myapp-css', build_css)
        engine.task('myapp-js', build_js, deps=['myapp-css'])

        result = await engine.start(['myapp-js'])
        result.executed   # ['myapp-css', 'myapp-js']
    """

    def __init__(self):
        self._tasks: Dict[str, EngineTask] = {}

    def task(self, name: str, action: Callable[[], Any], deps: Iterable[str] = ()) -> None:
        """Register a task. Re-registering a name replaces the old task."""
        if name in self._tasks:
            logger.debug("task %s re-registered, replacing previous definition", name)
        self._tasks[name] = EngineTask(name=name, action=action, deps=tuple(deps))

    def has_task(self, name: str) -> bool:
        return name in self._tasks

    def get(self, name: str) -> EngineTask:
        try:
            return self._tasks[name]
        except KeyError:
            raise TaskNotFound(f"task '{name}' is not registered")

    @property
    def task_names(self) -> List[str]:
        return list(self._tasks)

    async def start(self, names: Iterable[str]) -> RunResult:
        """Run the named tasks in order, each dependency first.

        A task runs at most once per call even if several names depend on it.
        A task whose dependency failed is still attempted.
        """
        result = RunResult()
        visited: Set[str] = set()
        for name in names:
            await self._run(name, result, visited)
        return result

    async def _run(self, name: str, result: RunResult, visited: Set[str]) -> None:
        if name in visited:
            return
        visited.add(name)

        try:
            task = self.get(name)
        except TaskNotFound as e:
            logger.error("%s", e)
            result.failed[name] = e
            return

        for dep in task.deps:
            await self._run(dep, result, visited)

        logger.debug("starting %s", name)
        try:
            await self._call(task.action)
        except Exception as e:
            logger.error("task %s failed: %s", name, e)
            result.failed[name] = e
        result.executed.append(name)
        logger.debug("finished %s", name)

    @staticmethod
    async def _call(action: Callable[[], Any]) -> Any:
        if inspect.iscoroutinefunction(action):
            return await action()
        value = await asyncio.to_thread(action)
        if inspect.isawaitable(value):
            return await value
        return value
