"""File pipelines for simple tasks.

Example:
    from tasker.pipeline import PipelineBuilder, ShellTransform

    builder = PipelineBuilder(resolver)
    pipeline = builder.compose(
        "myapp-css",
        sources=["/srv/apps/myapp/client/**/*.less"],
        stages=[ShellTransform("lessc -")],
    )
    await pipeline.run()

Classes:
    SourceFile: A file read from disk, with the base used for output layout
    Transform: ABC for stages
    FunctionTransform, Rename, Concat, ShellTransform: Built-in stages
    DestWriter: Stage that writes files to a destination
    Pipeline: A composed sources -> stages -> writers chain
    PipelineBuilder: Builds pipelines and writers for an application
"""

from .sources import SourceFile, read_sources
from .transforms import (
    Transform, FunctionTransform, Rename, Concat, ShellTransform, resolve_stage,
)
from .builder import DestWriter, Pipeline, PipelineBuilder

__all__ = [
    'SourceFile', 'read_sources',
    'Transform', 'FunctionTransform', 'Rename', 'Concat', 'ShellTransform',
    'resolve_stage',
    'DestWriter', 'Pipeline', 'PipelineBuilder',
]
