"""Shared fixtures for tasker tests."""

import pytest
from pathlib import Path

from tasker.config import AppContext, TaskerConfig
from tasker.tasker import Tasker


class Workspace:
    """Site root with one application folder and convenient file helpers."""

    def __init__(self, tmp_path: Path, app_name: str = 'myapp'):
        self.root = tmp_path
        self.app_base = tmp_path / 'apps' / app_name
        self.app_base.mkdir(parents=True)

    def create_file(self, path: str, content: str = '') -> Path:
        """Create a file relative to the app folder."""
        full_path = self.app_base / path
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_text(content)
        return full_path

    def site(self, vhost: str, path: str = '') -> Path:
        """Path under public/sites/<vhost>."""
        return self.root / 'public' / 'sites' / vhost / path

    def assets(self, app_name: str, path: str = '') -> Path:
        """Path under public/assets/<app>."""
        return self.root / 'public' / 'assets' / app_name / path

    def tasker(self, vhosts=('localhost',), is_testing=True, name='myapp') -> Tasker:
        config = TaskerConfig(path=str(self.root), is_testing=is_testing)
        app = AppContext(name=name, base=str(self.app_base), vhosts=tuple(vhosts))
        return Tasker(config, app)


@pytest.fixture
def ws(tmp_path):
    """Workspace fixture - files auto-cleaned after each test."""
    return Workspace(tmp_path)


@pytest.fixture
def app1():
    """The application mapping used by the path tests."""
    return {
        'name': 'myapp',
        'base': '/path/to/app/apps/myapp',
        'info': {
            'name': 'my app package',
            'mullet': {'vhost': 'localhost'},
        },
    }


@pytest.fixture
def tasker(app1):
    """A Tasker on fixed, non-existent paths (no filesystem access)."""
    return Tasker(TaskerConfig(path='/path/to/app', is_testing=True), app1)
