"""Per-application build tasks with multi-destination output and live reload.

Example:
    from tasker import Tasker, TaskerConfig, SimpleTaskSpec, ShellTransform

    tasker = Tasker(
        TaskerConfig('/srv/site'),
        {'name': 'myapp', 'base': '/srv/site/apps/myapp',
         'info': {'mullet': {'vhost': 'localhost'}}},
    )
    tasker.add('css', SimpleTaskSpec('client/**/*.less', [ShellTransform('lessc -')]))
    tasker.live()
    asyncio.run(tasker.run())
"""

from .config import AppContext, TaskerConfig
from .destinations import DestinationResolver, LocalDestination, S3Destination
from .engine import RunResult, TaskEngine
from .exceptions import (
    TaskerError,
    ConfigurationError,
    PipelineStageError,
    FileSystemError,
    WatchSetupError,
    NetworkError,
    TaskNotFound,
    ManifestParseError,
)
from .fileops import FileOps, WriteMode
from .index import SourceIndex
from .pipeline import (
    Concat, DestWriter, FunctionTransform, Rename, ShellTransform, SourceFile, Transform,
)
from .reload import ReloadNotifier, ReloadState
from .specs import SimpleTaskSpec, TaskContext, VerbatimTaskSpec
from .tasker import Tasker
from .watch import WatchCoordinator, WatchState

__all__ = [
    'Tasker',
    'TaskerConfig', 'AppContext',
    'SimpleTaskSpec', 'VerbatimTaskSpec', 'TaskContext',
    'TaskEngine', 'RunResult',
    'SourceIndex',
    'DestinationResolver', 'LocalDestination', 'S3Destination',
    'FileOps', 'WriteMode',
    'SourceFile', 'Transform', 'FunctionTransform', 'Rename', 'Concat',
    'ShellTransform', 'DestWriter',
    'ReloadNotifier', 'ReloadState',
    'WatchCoordinator', 'WatchState',
    'TaskerError', 'ConfigurationError', 'PipelineStageError', 'FileSystemError',
    'WatchSetupError', 'NetworkError', 'TaskNotFound', 'ManifestParseError',
]
