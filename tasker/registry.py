"""Task registry: the ordered task list and the source index of one app.

Task names are namespaced as "<app name>-<local name>" so several
applications can share one engine. The task list may end with a single
ActivationStep (added by live()); once it is there, or once the
registry is sealed by run(), further registrations are rejected.
"""

import functools
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Union

from .config import AppContext
from .engine import RunResult, TaskEngine
from .exceptions import ConfigurationError, PipelineStageError
from .index import SourceIndex
from .patterns import absolute_src
from .pipeline import PipelineBuilder
from .specs import SimpleTaskSpec, TaskContext, TaskSpec, VerbatimTaskSpec


logger = logging.getLogger(__name__)


@dataclass
class ActivationStep:
    """A deferred live() call, run after the task list completes.

    Attributes:
        callback: Coroutine function receiving the RunResult of the tasks
        port: Port the reload endpoint will listen on
    """
    callback: Callable[[Optional[RunResult]], Awaitable[None]]
    port: int

    async def __call__(self, result: Optional[RunResult] = None) -> None:
        await self.callback(result)


TaskEntry = Union[str, ActivationStep]


class TaskRegistry:
    """Registers tasks for one application into a TaskEngine.

    Example:
        registry = TaskRegistry(app, engine, builder, context_for)
        registry.add('css', SimpleTaskSpec('client/**/*.less', [less]))

        registry.tasks          # ['myapp-css']
        registry.source_index   # {'/srv/apps/myapp/client/**/*.less': ['myapp-css']}
    """

    def __init__(
        self,
        app: AppContext,
        engine: TaskEngine,
        builder: PipelineBuilder,
        context_for: Callable[[str], TaskContext],
    ):
        self.app = app
        self.engine = engine
        self.builder = builder
        self._context_for = context_for
        self.tasks: List[TaskEntry] = []
        self.source_index = SourceIndex()
        self._sealed = False

    def task_name(self, local_name: str) -> str:
        """Namespace a local task name with the app name."""
        return f"{self.app.name}-{local_name}"

    @property
    def activation(self) -> Optional[ActivationStep]:
        """The trailing activation step, if live() was called."""
        if self.tasks and isinstance(self.tasks[-1], ActivationStep):
            return self.tasks[-1]
        return None

    @property
    def task_names(self) -> List[str]:
        """Registered task names in order, activation step excluded."""
        return [t for t in self.tasks if isinstance(t, str)]

    @property
    def sealed(self) -> bool:
        return self._sealed or self.activation is not None

    def seal(self) -> None:
        """End the configuration phase."""
        self._sealed = True

    def add(self, local_name: str, spec: TaskSpec) -> 'TaskRegistry':
        """Register a task.

        Rejected (logged, nothing changes) after live() or run().

        Raises:
            TypeError: spec is not a SimpleTaskSpec or VerbatimTaskSpec
        """
        if self.activation is not None:
            logger.warning(
                "add(%r) ignored: live() or watch() should be called after "
                "all tasks are added", local_name,
            )
            return self
        if self._sealed:
            logger.warning("add(%r) ignored: tasks are already running", local_name)
            return self
        if not isinstance(spec, (SimpleTaskSpec, VerbatimTaskSpec)):
            raise TypeError(
                f"expected SimpleTaskSpec or VerbatimTaskSpec, got {type(spec).__name__}"
            )

        task_name = self.task_name(local_name)
        self.tasks.append(task_name)

        if isinstance(spec, SimpleTaskSpec):
            sources = absolute_src(spec.sources, self.app.base) if spec.sources else []
            self.source_index.register_sources(sources, task_name)
            self.engine.task(task_name, self._pipeline_action(task_name, sources, spec.stages))
        else:
            self.engine.task(
                task_name,
                self._verbatim_action(task_name, spec),
                deps=[self.task_name(d) for d in spec.deps],
            )
        return self

    def activate(self, step: ActivationStep) -> bool:
        """Append the activation step; False if one is already present."""
        if self.activation is not None:
            logger.warning("live() called more than once, ignoring")
            return False
        self.tasks.append(step)
        return True

    def _pipeline_action(
        self, task_name: str, sources: List[str], stages: Sequence[Any]
    ) -> Callable[[], Awaitable[None]]:
        builder = self.builder

        async def run_pipeline() -> None:
            try:
                pipeline = builder.compose(task_name, sources, stages)
            except (ConfigurationError, PipelineStageError) as e:
                logger.error("%s: %s", task_name, e)
                return
            await pipeline.run()

        return run_pipeline

    def _verbatim_action(self, task_name: str, spec: VerbatimTaskSpec) -> Callable[[], Any]:
        context = self._context_for(task_name)
        action = spec.action
        if inspect.iscoroutinefunction(action) or inspect.iscoroutinefunction(
            getattr(action, '__call__', None)
        ):
            async def run_action() -> Any:
                return await action(context)
            return run_action
        return functools.partial(action, context)
