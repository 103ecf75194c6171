"""Tests for the command line runner."""

import asyncio

import pytest

pytest.importorskip("yaml")

from tasker.manifest import main, run_manifest


MANIFEST = """
config:
  path: ../..
  testing: true
app:
  name: myapp
  base: .
  vhost: localhost
tasks:
  - name: hello
    sources: "*.txt"
  - name: touch
    command: "touch touched"
"""


@pytest.fixture
def manifest_path(ws):
    ws.create_file('a.txt', 'hello')
    path = ws.app_base / 'tasker.yaml'
    path.write_text(MANIFEST)
    return path


class TestRunManifest:
    """Tests for run_manifest()."""

    def test_runs_all_tasks(self, ws, manifest_path):
        result = asyncio.run(run_manifest(manifest_path))

        assert result.executed == ['myapp-hello', 'myapp-touch']
        assert ws.site('localhost', 'a.txt').read_text() == 'hello'

    def test_task_group(self, ws, manifest_path):
        result = asyncio.run(run_manifest(manifest_path, task_group=['touch']))

        assert result.executed == ['myapp-touch']
        assert not ws.site('localhost', 'a.txt').exists()


class TestMain:
    """Tests for main()."""

    def test_dry_run(self, ws, manifest_path, capsys):
        assert main([str(manifest_path), '--dry-run']) == 0

        out = capsys.readouterr().out
        assert '- myapp-hello' in out
        assert '- myapp-touch' in out
        assert f'{ws.app_base.resolve()}/*.txt -> myapp-hello' in out
        assert not (ws.app_base / 'touched').exists()

    def test_run(self, ws, manifest_path, capsys):
        assert main([str(manifest_path)]) == 0
        assert 'Completed 2 task(s)' in capsys.readouterr().out
        assert (ws.app_base / 'touched').exists()

    def test_failed_task_exit_code(self, ws, capsys):
        path = ws.app_base / 'tasker.yaml'
        path.write_text(MANIFEST.replace('touch touched', 'false'))

        assert main([str(path), '-t', 'touch']) == 1
        assert 'Failed: myapp-touch' in capsys.readouterr().err

    def test_missing_manifest(self, tmp_path, capsys):
        assert main([str(tmp_path / 'nope.yaml')]) == 1
        assert 'Manifest not found' in capsys.readouterr().err

    def test_invalid_manifest(self, tmp_path, capsys):
        path = tmp_path / 'tasker.yaml'
        path.write_text('config: {}\n')
        assert main([str(path)]) == 1
        assert "missing required field 'path'" in capsys.readouterr().err
