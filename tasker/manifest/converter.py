"""Convert a parsed manifest into a configured Tasker."""

import asyncio
import logging
import shlex
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..config import AppContext, TaskerConfig
from ..exceptions import PipelineStageError
from ..pipeline import Concat, DestWriter, Rename, ShellTransform, Transform
from ..specs import SimpleTaskSpec, TaskContext, VerbatimTaskSpec
from ..tasker import Tasker
from .parser import Manifest


logger = logging.getLogger(__name__)


def manifest_to_tasker(
    manifest: Manifest,
    base_dir: Union[str, Path, None] = None,
    is_testing: Optional[bool] = None,
    live: bool = True,
) -> Tasker:
    """Build a Tasker from a manifest.

    Args:
        manifest: Parsed manifest
        base_dir: Directory relative paths resolve against (defaults to the
                  manifest's directory, or cwd)
        is_testing: Override config.testing
        live: Honor the manifest's live setting
    """
    if base_dir is None:
        base_dir = manifest.path.parent if manifest.path else Path.cwd()
    base_dir = Path(base_dir).resolve()

    if is_testing is None and 'testing' in manifest.config:
        is_testing = bool(manifest.config['testing'])
    config = TaskerConfig.from_env(
        _resolve(base_dir, manifest.config['path']), is_testing=is_testing
    )

    app = AppContext.from_package({
        'name': manifest.app['name'],
        'base': _resolve(base_dir, manifest.app['base']),
        'info': {'mullet': {'vhost': manifest.app.get('vhost')}},
    })

    tasker = Tasker(config, app)
    for task in manifest.tasks:
        tasker.add(task['name'], task_spec(task))

    if manifest.compile is not None:
        tasker.compile(manifest.compile)
    if live and manifest.live is not None:
        tasker.live(manifest.live)
    return tasker


def _resolve(base_dir: Path, path: str) -> str:
    return str((base_dir / path).resolve())


def task_spec(task: Dict[str, Any]) -> Union[SimpleTaskSpec, VerbatimTaskSpec]:
    """Build the task specification for one validated task entry."""
    if 'sources' in task:
        return SimpleTaskSpec(task['sources'], [_stage(s) for s in task.get('stages', [])])

    deps = task.get('deps', [])
    if 'copy' in task:
        return VerbatimTaskSpec(CopyAction(task['copy']['from'], task['copy']['to']), deps=deps)
    return VerbatimTaskSpec(CommandAction(task['command']), deps=deps)


def _stage(stage: Any) -> Transform:
    if isinstance(stage, str):
        return ShellTransform(stage)
    kind, value = next(iter(stage.items()))
    if kind == 'shell':
        return ShellTransform(value)
    if kind == 'concat':
        return Concat(value)
    if kind == 'rename':
        return Rename(suffix=value.get('suffix'), name=value.get('name'))
    return DestWriter.to(value)


class CopyAction:
    """Copy files with the app's file operations; relative sources use the app base."""

    def __init__(self, from_pattern: str, to: Union[str, List[str]]):
        self.from_pattern = from_pattern
        self.to = to

    async def __call__(self, ctx: TaskContext) -> None:
        source = self.from_pattern
        if not source.startswith('/'):
            source = f"{ctx.app.base}/{source}"
        await ctx.file_ops.copy(source, self.to)

    def __repr__(self) -> str:
        return f"CopyAction({self.from_pattern!r} -> {self.to!r})"


class CommandAction:
    """Run a command in the app folder."""

    def __init__(self, command: Union[str, List[str]]):
        self.command = shlex.split(command) if isinstance(command, str) else list(command)

    async def __call__(self, ctx: TaskContext) -> None:
        proc = await asyncio.create_subprocess_exec(
            *self.command,
            cwd=ctx.app.base,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await proc.communicate()
        if stdout:
            logger.info("%s: %s", ctx.task_name, stdout.decode('utf-8', 'replace').strip())
        if proc.returncode != 0:
            raise PipelineStageError(
                f"`{shlex.join(self.command)}` exited with {proc.returncode}: "
                f"{stderr.decode('utf-8', 'replace').strip()}"
            )

    def __repr__(self) -> str:
        return f"CommandAction({shlex.join(self.command)!r})"
