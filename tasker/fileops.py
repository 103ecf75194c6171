"""Copy, write and append files to every destination of an application.

Each operation fans out to all resolved destinations at once and joins
on the whole set: the returned coroutine completes after every
destination finished, and raises the first failure (in destination
order) if any of them failed. Side effects of destinations that did
succeed are kept.
"""

import asyncio
import logging
import os
from enum import Enum
from typing import Awaitable, List, Sequence, Tuple, TypeVar, Union

from .destinations import (
    Destination,
    DestinationResolver,
    DestinationSpec,
    destination_for,
    normalize_spec,
)
from .exceptions import ConfigurationError, FileSystemError, TaskerError
from .patterns import expand


logger = logging.getLogger(__name__)

T = TypeVar('T')

WILDCARD = '*'


class WriteMode(Enum):
    """How write() treats an existing file."""
    WRITE = "write"
    APPEND = "append"


async def join_all(operations: Sequence[Tuple[str, Awaitable[T]]]) -> List[T]:
    """Run labelled operations concurrently and join on all of them.

    Siblings are never cancelled when one fails. Once every operation
    finished, the first failure (in the given order) is raised; plain
    exceptions are wrapped in FileSystemError naming the label.

    Args:
        operations: (destination key, awaitable) pairs

    Returns:
        Results in the given order
    """
    results = await asyncio.gather(
        *(op for _, op in operations), return_exceptions=True
    )
    for (key, _), result in zip(operations, results):
        if isinstance(result, TaskerError):
            raise result
        if isinstance(result, Exception):
            raise FileSystemError(key, str(result)) from result
        if isinstance(result, BaseException):
            raise result
    return list(results)


def _strip_relative(path: str) -> str:
    if path.startswith('./'):
        return path[2:]
    return path.lstrip('/')


class FileOps:
    """Multi-destination file operations for one application."""

    def __init__(self, resolver: DestinationResolver):
        self.resolver = resolver

    def _copy_targets(
        self, to_spec: Union[str, Sequence[str]]
    ) -> List[Tuple[Destination, str]]:
        """Resolve a copy target into (destination, relative path) pairs.

        A relative path that is empty or ends with '/' names a directory.
        An explicit local path that is an existing directory counts as one.
        """
        if isinstance(to_spec, str) and to_spec.endswith(WILDCARD):
            if not self.resolver.dest_paths:
                raise ConfigurationError(
                    f"cannot expand '{to_spec}': app '{self.resolver.app.name}' "
                    "has no vhost destinations"
                )
            remainder = _strip_relative(to_spec[:-1])
            return [(destination_for(root), remainder)
                    for root in self.resolver.dest_paths]

        targets = []
        for path in normalize_spec(to_spec):
            if path.endswith('/') or (not path.startswith('s3://') and os.path.isdir(path)):
                targets.append((destination_for(path.rstrip('/') or '/'), ''))
            else:
                head, tail = os.path.split(path)
                targets.append((destination_for(head or '.'), tail))
        return targets

    async def copy(
        self,
        from_pattern: str,
        to_spec: Union[str, Sequence[str]],
    ) -> List[List[str]]:
        """Copy files matching from_pattern to every target at once.

        Args:
            from_pattern: Source file or glob
            to_spec: 'dir/*' to copy into dir/ under every vhost destination,
                otherwise one explicit path or a sequence of paths

        Returns:
            One list of written paths per destination
        """
        targets = self._copy_targets(to_spec)
        sources = [path for path, _ in expand([from_pattern])]

        async def copy_one(dest: Destination, relpath: str) -> List[str]:
            if not sources:
                raise FileSystemError(from_pattern, "no files match")
            directory = relpath == '' or relpath.endswith('/')
            if not directory and len(sources) > 1:
                raise FileSystemError(
                    dest.key,
                    f"cannot copy {len(sources)} files onto a single file",
                )
            written = []
            for source in sources:
                target = relpath + os.path.basename(source) if directory else relpath
                written.append(await asyncio.to_thread(dest.copy_from, source, target))
            return written

        try:
            return await join_all([
                (dest.key, copy_one(dest, relpath)) for dest, relpath in targets
            ])
        except TaskerError as e:
            logger.error("copy %s -> %s failed: %s", from_pattern, to_spec, e)
            raise

    async def write(
        self,
        name: str,
        data: Union[str, bytes],
        destination: DestinationSpec = None,
        mode: WriteMode = WriteMode.WRITE,
    ) -> List[str]:
        """Write data to <destination>/<name> for every destination at once.

        Raises:
            ConfigurationError: No destination given and no vhost configured
            FileSystemError: At least one destination failed

        Returns:
            Written paths, one per destination
        """
        explicit = normalize_spec(destination)
        if not explicit and not self.resolver.dest_paths:
            logger.error("write %s: no destination paths available", name)
            raise ConfigurationError(
                f"no destination paths available to write '{name}'"
            )

        if isinstance(data, str):
            data = data.encode('utf-8')
        append = mode is WriteMode.APPEND

        operations = []
        for dest in self.resolver.destinations(explicit or None):
            operations.append((
                dest.key,
                asyncio.to_thread(dest.write, name, data, append),
            ))

        try:
            return await join_all(operations)
        except TaskerError as e:
            logger.error("%s %s failed: %s", mode.value, name, e)
            raise

    async def append(
        self,
        name: str,
        data: Union[str, bytes],
        destination: DestinationSpec = None,
    ) -> List[str]:
        """Append data to <destination>/<name> for every destination at once."""
        return await self.write(name, data, destination, mode=WriteMode.APPEND)
