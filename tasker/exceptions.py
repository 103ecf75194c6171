"""Error taxonomy for tasker.

Most of these are caught and logged where they happen; only aggregate
file operations and manifest parsing let them reach the caller.
"""


class TaskerError(Exception):
    """Base class for all tasker errors."""
    pass


class ConfigurationError(TaskerError):
    """No destination is available and none was overridden."""
    pass


class PipelineStageError(TaskerError):
    """A transform, bundler or compile step failed."""
    pass


class FileSystemError(TaskerError):
    """Directory creation, read, write or copy failed for one destination.

    Attributes:
        destination: Key of the destination that failed
    """

    def __init__(self, destination: str, message: str):
        super().__init__(f"{destination}: {message}")
        self.destination = destination


class WatchSetupError(TaskerError):
    """Re-entrant watch()/run() or a watcher that could not be set up."""
    pass


class NetworkError(TaskerError):
    """The live reload endpoint could not bind."""
    pass


class TaskNotFound(TaskerError):
    """The engine was asked to run a task that was never registered."""
    pass


class ManifestParseError(TaskerError):
    """Error parsing or validating a tasker.yaml manifest."""
    pass
