"""Live reload notification for connected browsers.

Example:
    notifier = ReloadNotifier(config, on_listen=tasker.watch)
    await notifier.listen(9999)
    await notifier.notify(['/css/site.css'])
"""

from .notifier import DEFAULT_PORT, ReloadNotifier, ReloadState
from .server import ReloadHub, create_app

__all__ = [
    'DEFAULT_PORT',
    'ReloadNotifier',
    'ReloadState',
    'ReloadHub',
    'create_app',
]
