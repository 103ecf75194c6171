"""Source index mapping absolute globs to the tasks that read them.

When a watched file changes, we need to know which tasks to re-run.
The index is built additively while tasks are registered and is never
pruned; per-glob task order follows registration order.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Tuple


@dataclass
class SourceIndex:
    """Index from absolute source glob to dependent task names.

    Example:
        index = SourceIndex()
        index.register('/app/client/**/*.less', 'myapp-css')
        index.register('/app/client/**/*.less', 'myapp-lint')

        index['/app/client/**/*.less']
        # ['myapp-css', 'myapp-lint']
    """

    _glob_to_tasks: Dict[str, List[str]] = field(default_factory=dict)

    def register(self, glob: str, task_name: str) -> None:
        """Record that task_name depends on glob."""
        if glob not in self._glob_to_tasks:
            self._glob_to_tasks[glob] = []
        self._glob_to_tasks[glob].append(task_name)

    def register_sources(self, globs: List[str], task_name: str) -> None:
        """Register several globs for the same task."""
        for glob in globs:
            self.register(glob, task_name)

    def tasks_for(self, glob: str) -> List[str]:
        """Return the task names registered against glob (copy)."""
        return list(self._glob_to_tasks.get(glob, []))

    def items(self) -> Iterator[Tuple[str, List[str]]]:
        """Iterate (glob, task names) pairs in insertion order."""
        for glob, tasks in self._glob_to_tasks.items():
            yield glob, list(tasks)

    def as_dict(self) -> Dict[str, List[str]]:
        """Return a plain dict copy of the index."""
        return {glob: list(tasks) for glob, tasks in self._glob_to_tasks.items()}

    def __getitem__(self, glob: str) -> List[str]:
        return self._glob_to_tasks[glob]

    def __contains__(self, glob: str) -> bool:
        return glob in self._glob_to_tasks

    def __len__(self) -> int:
        return len(self._glob_to_tasks)
