"""Process-wide configuration and per-application context.

Both records are created once and never mutated. The application record
mirrors the package description an app ships with:

    {
        "name": "myapp",
        "base": "/srv/site/apps/myapp",
        "info": {"mullet": {"vhost": ["localhost", "example.test"]}},
    }
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union


TESTING_ENV_VAR = 'TASKER_TESTING'

_TRUTHY = {'1', 'true', 'yes', 'on'}


@dataclass(frozen=True)
class TaskerConfig:
    """Process-wide settings supplied at construction.

    Attributes:
        path: Root filesystem path that holds public/sites and public/assets
        is_testing: Suppresses network binding in live()
    """
    path: str
    is_testing: bool = False

    @classmethod
    def from_env(
        cls,
        path: Union[str, Path],
        is_testing: Optional[bool] = None,
    ) -> 'TaskerConfig':
        """Build a config, reading test mode from TASKER_TESTING if not given."""
        if is_testing is None:
            is_testing = os.environ.get(TESTING_ENV_VAR, '').lower() in _TRUTHY
        return cls(path=str(path), is_testing=is_testing)


@dataclass(frozen=True)
class AppContext:
    """Immutable description of one application.

    Attributes:
        name: Application name, used as the task name prefix
        base: Absolute path of the application folder
        vhosts: Virtual hosts the application publishes to (may be empty)
        info: The raw package info the context was built from
    """
    name: str
    base: str
    vhosts: Tuple[str, ...] = ()
    info: Mapping[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_package(cls, app: Mapping[str, Any]) -> 'AppContext':
        """Build a context from an application mapping.

        The vhost entry under info.mullet may be a single string or a list.
        """
        info: Dict[str, Any] = dict(app.get('info') or {})
        mullet = info.get('mullet') or {}
        vhost = mullet.get('vhost')

        if vhost is None:
            vhosts: Tuple[str, ...] = ()
        elif isinstance(vhost, str):
            vhosts = (vhost,)
        else:
            vhosts = tuple(vhost)

        return cls(
            name=app['name'],
            base=str(app['base']).rstrip('/'),
            vhosts=vhosts,
            info=info,
        )
