"""Tasker: build tasks, file fan-out and live reload for one application.

Example:
    tasker = Tasker(config, app)
    (tasker
        .add('templates', SimpleTaskSpec('src/templates/**/*.html', [minify]))
        .add('css', SimpleTaskSpec('src/css/**/*.less', [ShellTransform('lessc -')]))
        .compile()
        .live())
    await tasker.run()

Configuration (add/compile/live) and execution (run) are separate
phases: live() and run() seal the task list.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .bundler import BundleStep, load_bundler_config
from .config import AppContext, TaskerConfig
from .destinations import DestinationResolver, DestinationSpec
from .engine import RunResult, TaskEngine
from .exceptions import ConfigurationError
from .fileops import FileOps
from .patterns import absolute_src
from .pipeline import DestWriter, PipelineBuilder
from .registry import ActivationStep, TaskEntry, TaskRegistry
from .reload import DEFAULT_PORT, ReloadNotifier
from .specs import TaskContext, TaskSpec, VerbatimTaskSpec
from .watch import WatchCoordinator


logger = logging.getLogger(__name__)


class Tasker:
    """Per-application build orchestrator.

    Args:
        config: Process-wide settings
        app: Application context, or the raw application mapping
        engine: Engine to register tasks in (a private one by default)
    """

    def __init__(
        self,
        config: TaskerConfig,
        app: Union[AppContext, Mapping[str, Any]],
        engine: Optional[TaskEngine] = None,
    ):
        if not isinstance(app, AppContext):
            app = AppContext.from_package(app)
        self.config = config
        self.app = app
        self.engine = engine or TaskEngine()
        self.resolver = DestinationResolver(config, app)
        self.file_ops = FileOps(self.resolver)
        self.builder = PipelineBuilder(self.resolver)
        self.registry = TaskRegistry(app, self.engine, self.builder, self._context_for)
        self.notifier = ReloadNotifier(config, on_listen=self.watch)
        self.watcher = WatchCoordinator(self.registry.source_index, self.engine, self.notifier)
        self.running = False

    def _context_for(self, task_name: str) -> TaskContext:
        return TaskContext(
            app=self.app,
            task_name=task_name,
            destinations=self.resolver.dest_paths,
            share_path=self.resolver.share_path,
            file_ops=self.file_ops,
        )

    # -- read-only views -------------------------------------------------

    @property
    def dest_paths(self) -> List[str]:
        return list(self.resolver.dest_paths)

    @property
    def share_path(self) -> str:
        return self.resolver.share_path

    @property
    def tasks(self) -> List[TaskEntry]:
        return list(self.registry.tasks)

    @property
    def srcs(self) -> Dict[str, List[str]]:
        return self.registry.source_index.as_dict()

    def absolute_src(self, globs: Union[str, Sequence[str]]) -> List[str]:
        """Convert app-relative globs to absolute ones."""
        return absolute_src(globs, self.app.base)

    # -- configuration phase ---------------------------------------------

    def add(self, name: str, spec: TaskSpec) -> 'Tasker':
        """Register a task under "<app name>-<name>"."""
        self.registry.add(name, spec)
        return self

    def compile(self, augment: Optional[Mapping[str, Any]] = None) -> 'Tasker':
        """Add bundle-build and bundle-dist tasks from the app's bundler.yaml."""
        if self.registry.sealed:
            logger.warning("compile() ignored: call it before live() and run()")
            return self
        bundler_config = load_bundler_config(self.app.base, augment)
        if bundler_config is None:
            return self
        step = BundleStep(bundler_config, self.builder)
        self.add('bundle-build', VerbatimTaskSpec(step.build))
        self.add('bundle-dist', VerbatimTaskSpec(step.dist, deps=['bundle-build']))
        return self

    def pipe_to(self, override: DestinationSpec = None) -> List[DestWriter]:
        """Writers for the override or every vhost destination.

        Returns an empty list (and logs) when nothing is available.
        """
        try:
            return self.builder.pipe_to(override)
        except ConfigurationError as e:
            logger.error("pipe_to: %s", e)
            return []

    def dest(self, path: str) -> DestWriter:
        return self.builder.dest(path)

    def live(self, port: int = DEFAULT_PORT) -> 'Tasker':
        """Start the reload endpoint (and watching) after the tasks ran."""
        self.registry.activate(ActivationStep(self._activate, port))
        return self

    async def _activate(self, result: Optional[RunResult] = None) -> None:
        if result is not None and not result.succeeded:
            logger.error("live reload not started, failed tasks: %s", ', '.join(result.failed))
            return
        port = self.registry.activation.port
        await self.notifier.listen(port)

    # -- execution phase -------------------------------------------------

    def watch(self) -> None:
        """Watch every registered source glob (normally armed by live())."""
        self.watcher.watch()

    async def run(self, task_group: Union[str, Sequence[str], None] = None) -> RunResult:
        """Run the task group, or every task followed by the live() step.

        The live() step is skipped when any task failed.
        """
        if isinstance(task_group, str):
            task_group = [task_group]
        if self.running:
            logger.warning("run() called more than once")
        self.running = True
        self.registry.seal()

        names = list(task_group) if task_group else self.registry.task_names
        logger.info("Tasker running %s", ', '.join(names))
        result = await self.engine.start(names)

        activation = self.registry.activation
        if activation is not None and not task_group:
            await activation(result)
        return result

    async def close(self) -> None:
        """Stop watching and close the reload endpoint."""
        await self.watcher.close()
        await self.notifier.close()

    # -- file operations -------------------------------------------------

    async def copy_file(self, from_pattern: str, to: Union[str, Sequence[str]]) -> List[List[str]]:
        """Copy to 'dir/*' under every destination, or to explicit paths."""
        return await self.file_ops.copy(from_pattern, to)

    async def write_file(self, name: str, data: Union[str, bytes],
                         destination: DestinationSpec = None) -> List[str]:
        return await self.file_ops.write(name, data, destination)

    async def append_file(self, name: str, data: Union[str, bytes],
                          destination: DestinationSpec = None) -> List[str]:
        return await self.file_ops.append(name, data, destination)
