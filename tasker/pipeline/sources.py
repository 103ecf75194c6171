"""Source files flowing through a pipeline."""

import asyncio
import os
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional

from ..patterns import expand


@dataclass(frozen=True)
class SourceFile:
    """One file read from disk.

    Attributes:
        path: Absolute path of the file (renames change it)
        base: Static prefix of the glob that matched; writers place the
              file at its path relative to this base
        contents: Raw file contents
    """
    path: str
    base: str
    contents: bytes

    @property
    def relative(self) -> str:
        """Path relative to base, '/'-separated."""
        return os.path.relpath(self.path, self.base).replace(os.sep, '/')

    @property
    def name(self) -> str:
        return os.path.basename(self.path)

    @property
    def text(self) -> str:
        return self.contents.decode('utf-8')

    def with_contents(self, contents) -> 'SourceFile':
        """Return a copy holding new contents (str is UTF-8 encoded)."""
        if isinstance(contents, str):
            contents = contents.encode('utf-8')
        return replace(self, contents=contents)

    def with_path(self, path: str) -> 'SourceFile':
        return replace(self, path=path)


def _read(path: str) -> bytes:
    with open(path, 'rb') as f:
        return f.read()


async def read_sources(globs: Iterable[str], base: Optional[str] = None) -> List[SourceFile]:
    """Read every file matching the globs, concurrently.

    Args:
        globs: Absolute globs
        base: Force a base directory instead of each glob's static prefix
    """
    matches = expand(globs)
    contents = await asyncio.gather(
        *(asyncio.to_thread(_read, path) for path, _ in matches)
    )
    return [
        SourceFile(path=path, base=base or glob_base, contents=data)
        for (path, glob_base), data in zip(matches, contents)
    ]
