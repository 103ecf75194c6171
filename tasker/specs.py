"""Task specifications accepted by Tasker.add().

A task is either a simple pipe (sources -> stages -> destinations) or a
verbatim registration handed to the engine unchanged. The caller picks
the variant explicitly:

    tasker.add('css', SimpleTaskSpec('client/**/*.less', [less_stage]))
    tasker.add('clean', VerbatimTaskSpec(clean_public, deps=['css']))
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Sequence, Tuple, Union

if TYPE_CHECKING:
    from .config import AppContext
    from .fileops import FileOps


@dataclass(frozen=True)
class SimpleTaskSpec:
    """Read sources, apply stages in order, write to every destination.

    Attributes:
        sources: Glob or globs relative to the app base
        stages: Transforms and/or zero-argument transform factories
    """
    sources: Tuple[str, ...]
    stages: Tuple[Any, ...]

    def __init__(
        self,
        sources: Union[str, Sequence[str]],
        stages: Union[Any, Sequence[Any]] = (),
    ):
        if isinstance(sources, str):
            sources = (sources,)
        if not isinstance(stages, (list, tuple)):
            stages = (stages,)
        object.__setattr__(self, 'sources', tuple(sources))
        object.__setattr__(self, 'stages', tuple(stages))


@dataclass(frozen=True)
class VerbatimTaskSpec:
    """An engine-native task.

    Attributes:
        action: Callable (plain or async) receiving a TaskContext
        deps: Local names of tasks the engine runs first
    """
    action: Callable[['TaskContext'], Any]
    deps: Tuple[str, ...] = field(default=())

    def __post_init__(self):
        object.__setattr__(self, 'deps', tuple(self.deps))


TaskSpec = Union[SimpleTaskSpec, VerbatimTaskSpec]


@dataclass(frozen=True)
class TaskContext:
    """Everything a task callback may use, passed explicitly.

    Attributes:
        app: The application the task belongs to
        task_name: Namespaced task name
        destinations: Resolved vhost destination paths
        share_path: Shared assets directory of the app
        file_ops: Multi-destination file operations
    """
    app: 'AppContext'
    task_name: str
    destinations: Tuple[str, ...]
    share_path: str
    file_ops: 'FileOps'
