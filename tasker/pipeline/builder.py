"""Compose simple tasks into runnable pipelines.

A pipeline reads every file matching its sources, runs the stages in
order and then hands an identical copy of the result to one writer per
destination. Writers run concurrently.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from ..destinations import Destination, DestinationResolver, DestinationSpec, destination_for
from ..exceptions import ConfigurationError
from ..fileops import join_all
from .sources import SourceFile, read_sources
from .transforms import Transform, resolve_stage


logger = logging.getLogger(__name__)


class DestWriter(Transform):
    """Write each file to <destination>/<relative path>, passing files through."""

    def __init__(self, destination: Destination):
        self.destination = destination

    @classmethod
    def to(cls, path: str) -> 'DestWriter':
        return cls(destination_for(path))

    @property
    def key(self) -> str:
        return self.destination.key

    async def apply(self, files: List[SourceFile]) -> List[SourceFile]:
        await asyncio.gather(*(
            asyncio.to_thread(self.destination.write, f.relative, f.contents)
            for f in files
        ))
        return files

    def __repr__(self) -> str:
        return f"DestWriter({self.key!r})"


@dataclass
class Pipeline:
    """A composed sources -> stages -> writers chain.

    Attributes:
        name: Task name used in log messages
        sources: Absolute globs
        stages: Resolved transforms, applied in order
        writers: One writer per destination
    """
    name: str
    sources: List[str]
    stages: List[Transform]
    writers: List[DestWriter] = field(default_factory=list)

    async def run(self) -> Optional[List[SourceFile]]:
        """Run the pipeline, logging instead of raising on failure.

        Returns:
            The files handed to the writers, or None if the pipeline failed
        """
        try:
            files = await read_sources(self.sources)
            for stage in self.stages:
                files = await stage.run(files)
            await join_all([(w.key, w.run(files)) for w in self.writers])
        except Exception as e:
            logger.error("pipeline %s failed: %s", self.name, e)
            return None
        logger.debug("pipeline %s wrote %d file(s) to %d destination(s)",
                     self.name, len(files), len(self.writers))
        return files


class PipelineBuilder:
    """Build pipelines and writers for one application."""

    def __init__(self, resolver: DestinationResolver):
        self.resolver = resolver

    def pipe_to(self, override: DestinationSpec = None) -> List[DestWriter]:
        """Return one writer per destination (override or vhost destinations).

        Raises:
            ConfigurationError: No override and the app has no vhost
        """
        destinations = self.resolver.destinations(override)
        if not destinations:
            raise ConfigurationError(
                f"app '{self.resolver.app.name}' has no vhost specified "
                "and no destination override"
            )
        return [DestWriter(d) for d in destinations]

    def dest(self, path: str) -> DestWriter:
        """A single writer for an explicit path."""
        return DestWriter.to(path)

    def compose(
        self,
        name: str,
        sources: Sequence[str],
        stages: Sequence[Any],
        destinations: DestinationSpec = None,
    ) -> Pipeline:
        """Build a pipeline, calling any stage factories.

        Raises:
            ConfigurationError: No destination is available
            PipelineStageError: A stage is neither a Transform nor a factory
        """
        writers = self.pipe_to(destinations)
        return Pipeline(
            name=name,
            sources=list(sources),
            stages=[resolve_stage(s) for s in stages],
            writers=writers,
        )
