"""Bundler task flavor used by Tasker.compile().

The bundler itself is an external program described by bundler.yaml in
the application folder:

    command: ["npx", "webpack", "--mode", "production"]
    output: build
    env:
      NODE_ENV: production

Two tasks come out of it: one runs the command in the app folder, the
other copies everything under the output directory to the app's shared
assets directory.
"""

import asyncio
import logging
import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from .exceptions import PipelineStageError
from .pipeline import PipelineBuilder
from .specs import TaskContext


logger = logging.getLogger(__name__)

BUNDLER_CONFIG_FILE = 'bundler.yaml'


@dataclass
class BundlerConfig:
    """Parsed bundler.yaml, augmented and bound to the app folder."""
    command: List[str]
    context: str
    output: str = 'build'
    env: Dict[str, str] = field(default_factory=dict)

    @property
    def output_dir(self) -> str:
        return os.path.join(self.context, self.output)


def load_bundler_config(
    base: Union[str, Path],
    augment: Optional[Mapping[str, Any]] = None,
) -> Optional[BundlerConfig]:
    """Load <base>/bundler.yaml and apply overrides.

    Problems are logged, not raised: a missing file is a warning, an
    unreadable one an error. Either way None is returned.
    """
    path = Path(base) / BUNDLER_CONFIG_FILE
    if not path.exists():
        logger.warning("compile: no %s found in %s", BUNDLER_CONFIG_FILE, base)
        return None

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.error("compile: cannot read %s: %s", path, e)
        return None

    if not isinstance(data, dict):
        logger.error("compile: %s must be a mapping", path)
        return None

    if augment:
        data.update(augment)

    command = data.get('command')
    if isinstance(command, str):
        command = shlex.split(command)
    if not command:
        logger.error("compile: %s has no 'command'", path)
        return None

    return BundlerConfig(
        command=[str(c) for c in command],
        context=str(base),
        output=str(data.get('output', 'build')),
        env={str(k): str(v) for k, v in (data.get('env') or {}).items()},
    )


class BundleStep:
    """The build and dist actions for one bundler configuration."""

    def __init__(self, config: BundlerConfig, builder: PipelineBuilder):
        self.config = config
        self.builder = builder

    async def build(self, ctx: TaskContext) -> None:
        """Run the bundler command in the app folder.

        Raises:
            PipelineStageError: The command could not start or exited non-zero
        """
        env = os.environ.copy()
        env.update(self.config.env)
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.config.command,
                cwd=self.config.context,
                env=env,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise PipelineStageError(f"{ctx.task_name}: cannot run bundler: {e}") from e

        stdout, stderr = await proc.communicate()
        if stdout:
            logger.debug("%s: %s", ctx.task_name, stdout.decode('utf-8', 'replace').strip())
        if proc.returncode != 0:
            raise PipelineStageError(
                f"{ctx.task_name}: `{shlex.join(self.config.command)}` exited with "
                f"{proc.returncode}: {stderr.decode('utf-8', 'replace').strip()}"
            )

    async def dist(self, ctx: TaskContext) -> None:
        """Copy the bundler output to the shared assets directory."""
        pipeline = self.builder.compose(
            ctx.task_name,
            sources=[self.config.output_dir + '/**/*'],
            stages=[],
            destinations=[ctx.share_path],
        )
        await pipeline.run()
