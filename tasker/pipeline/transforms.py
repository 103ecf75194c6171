"""Pipeline stages.

A stage list may mix ready-made Transform instances and zero-argument
factories that return one; factories are called each time the pipeline
is composed, so every run gets a fresh transform.

Example:
    stages = [
        ShellTransform("lessc --include-path={dir} -"),
        lambda: Rename(suffix=".css"),
        Concat("site.css"),
    ]
"""

import asyncio
import inspect
import os
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from ..exceptions import PipelineStageError
from .sources import SourceFile


class Transform(ABC):
    """Base class for pipeline stages.

    apply() may be a plain method or a coroutine.
    """

    @abstractmethod
    def apply(self, files: List[SourceFile]) -> Any:
        """Return the transformed list of files."""
        pass

    async def run(self, files: List[SourceFile]) -> List[SourceFile]:
        result = self.apply(files)
        if inspect.isawaitable(result):
            result = await result
        return list(result)


class FunctionTransform(Transform):
    """Apply a function to each file; returning None drops the file."""

    def __init__(self, fn: Callable[[SourceFile], Optional[SourceFile]]):
        self.fn = fn

    def apply(self, files: List[SourceFile]) -> List[SourceFile]:
        out = []
        for f in files:
            result = self.fn(f)
            if result is not None:
                out.append(result)
        return out

    def __repr__(self) -> str:
        return f"FunctionTransform({getattr(self.fn, '__name__', self.fn)!r})"


class Rename(Transform):
    """Change file suffix and/or name, keeping the directory."""

    def __init__(self, suffix: Optional[str] = None, name: Optional[str] = None):
        self.suffix = suffix
        self.name = name

    def apply(self, files: List[SourceFile]) -> List[SourceFile]:
        out = []
        for f in files:
            directory, filename = os.path.split(f.path)
            if self.name is not None:
                filename = self.name
            if self.suffix is not None:
                filename = os.path.splitext(filename)[0] + self.suffix
            out.append(f.with_path(os.path.join(directory, filename)))
        return out


class Concat(Transform):
    """Join all files into one, named relative to the first file's base."""

    def __init__(self, name: str, separator: str = "\n"):
        self.name = name
        self.separator = separator.encode('utf-8')

    def apply(self, files: List[SourceFile]) -> List[SourceFile]:
        if not files:
            return []
        first = files[0]
        return [SourceFile(
            path=os.path.join(first.base, self.name),
            base=first.base,
            contents=self.separator.join(f.contents for f in files),
        )]


class ShellTransform(Transform):
    """Pipe each file's contents through a shell command.

    Variables are injected in TWO ways:
    1. Format string substitution: {path}, {name}, {stem}, {suffix}, {dir}
    2. Environment variables with the same names

    The command reads the file on stdin; its stdout becomes the new
    contents. A non-zero exit raises PipelineStageError with stderr.
    """

    def __init__(self, template: str):
        self.template = template

    @staticmethod
    def _build_substitutions(f: SourceFile) -> Dict[str, str]:
        stem, suffix = os.path.splitext(f.name)
        return {
            'path': f.path,
            'name': f.name,
            'stem': stem,
            'suffix': suffix,
            'dir': os.path.dirname(f.path),
        }

    def _format_command(self, subs: Dict[str, str]) -> str:
        try:
            return self.template.format(**subs)
        except KeyError as e:
            available = ', '.join(sorted(subs.keys()))
            raise PipelineStageError(
                f"Unknown variable {e} in stage command. "
                f"Available variables: {available}"
            )

    async def _run_one(self, f: SourceFile) -> SourceFile:
        subs = self._build_substitutions(f)
        cmd = self._format_command(subs)
        env = os.environ.copy()
        env.update(subs)

        proc = await asyncio.create_subprocess_shell(
            cmd,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
        )
        stdout, stderr = await proc.communicate(f.contents)
        if proc.returncode != 0:
            raise PipelineStageError(
                f"`{cmd}` exited with {proc.returncode} on {f.path}: "
                f"{stderr.decode('utf-8', 'replace').strip()}"
            )
        return f.with_contents(stdout)

    async def apply(self, files: List[SourceFile]) -> List[SourceFile]:
        return list(await asyncio.gather(*(self._run_one(f) for f in files)))

    def __repr__(self) -> str:
        return f"ShellTransform({self.template!r})"


def resolve_stage(stage: Any) -> Transform:
    """Return a Transform, calling stage first if it is a factory."""
    if isinstance(stage, Transform):
        return stage
    if callable(stage):
        produced = stage()
        if isinstance(produced, Transform):
            return produced
        raise PipelineStageError(
            f"stage factory {getattr(stage, '__name__', stage)!r} returned "
            f"{type(produced).__name__}, expected a Transform"
        )
    raise PipelineStageError(
        f"invalid stage {stage!r}: expected a Transform or a factory"
    )
