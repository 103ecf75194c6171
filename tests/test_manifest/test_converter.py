"""Tests for manifest -> Tasker conversion."""

import asyncio

import pytest

pytest.importorskip("yaml")

from tasker.exceptions import PipelineStageError
from tasker.manifest import manifest_to_tasker, parse_manifest_file, parse_manifest_string, task_spec
from tasker.manifest.converter import CommandAction, CopyAction
from tasker.pipeline import Concat, DestWriter, Rename, ShellTransform
from tasker.specs import SimpleTaskSpec, VerbatimTaskSpec


def write_manifest(ws, body, vhost='localhost'):
    path = ws.app_base / 'tasker.yaml'
    path.write_text(
        "config:\n"
        "  path: ../..\n"
        "  testing: true\n"
        "app:\n"
        "  name: myapp\n"
        "  base: .\n"
        f"  vhost: {vhost}\n"
        + body
    )
    return parse_manifest_file(path)


class TestTaskSpec:
    """Tests for task_spec()."""

    def test_pipe_task_stages(self):
        spec = task_spec({
            'name': 'css',
            'sources': 'client/*.less',
            'stages': [
                'lessc -',
                {'shell': 'cleancss'},
                {'rename': {'suffix': '.css'}},
                {'concat': 'site.css'},
                {'dest': '/tmp/out'},
            ],
        })

        assert isinstance(spec, SimpleTaskSpec)
        assert spec.sources == ('client/*.less',)
        assert [type(s) for s in spec.stages] == [
            ShellTransform, ShellTransform, Rename, Concat, DestWriter,
        ]
        assert spec.stages[1].template == 'cleancss'

    def test_copy_task(self):
        spec = task_spec({'name': 'img', 'copy': {'from': '*.png', 'to': 'img/*'}, 'deps': ['x']})
        assert isinstance(spec, VerbatimTaskSpec)
        assert isinstance(spec.action, CopyAction)
        assert spec.deps == ('x',)

    def test_command_task(self):
        spec = task_spec({'name': 'lint', 'command': 'eslint "client dir"'})
        assert isinstance(spec.action, CommandAction)
        assert spec.action.command == ['eslint', 'client dir']


class TestManifestToTasker:
    """Tests for manifest_to_tasker()."""

    def test_paths_resolve_against_manifest(self, ws):
        manifest = write_manifest(ws, "tasks:\n  - {name: js, sources: '*.js'}\n")
        tasker = manifest_to_tasker(manifest)

        assert tasker.config.path == str(ws.root.resolve())
        assert tasker.config.is_testing is True
        assert tasker.app.base == str(ws.app_base.resolve())
        assert tasker.dest_paths == [str(ws.root.resolve() / 'public' / 'sites' / 'localhost')]
        assert tasker.tasks == ['myapp-js']

    def test_live_is_registered(self, ws):
        manifest = write_manifest(ws, "live: 0\n")
        tasker = manifest_to_tasker(manifest)
        assert tasker.registry.activation.port == 0

    def test_live_can_be_disabled(self, ws):
        manifest = write_manifest(ws, "live: true\n")
        tasker = manifest_to_tasker(manifest, live=False)
        assert tasker.registry.activation is None

    def test_base_dir_override(self, tmp_path):
        manifest = parse_manifest_string(
            "config: {path: site}\napp: {name: a, base: site/apps/a}\n"
        )
        tasker = manifest_to_tasker(manifest, base_dir=tmp_path, is_testing=True)
        assert tasker.app.base == str(tmp_path.resolve() / 'site' / 'apps' / 'a')


class TestActions:
    """Tests for the copy and command actions running in a Tasker."""

    def test_copy_and_pipe_run(self, ws):
        ws.create_file('static/logo.png', 'png')
        ws.create_file('client/a.txt', 'hello')
        manifest = write_manifest(ws, """
tasks:
  - name: text
    sources: "client/*.txt"
    stages:
      - "tr a-z A-Z"
      - rename: {suffix: .out}
  - name: images
    copy: {from: "static/*.png", to: "img/*"}
""")
        tasker = manifest_to_tasker(manifest)

        result = asyncio.run(tasker.run())

        assert result.succeeded
        site = ws.root.resolve() / 'public' / 'sites' / 'localhost'
        assert (site / 'a.out').read_text() == 'HELLO'
        assert (site / 'img' / 'logo.png').read_text() == 'png'

    def test_command_failure_is_recorded(self, ws):
        manifest = write_manifest(ws, "tasks:\n  - {name: fail, command: 'false'}\n")
        tasker = manifest_to_tasker(manifest)

        result = asyncio.run(tasker.run())

        assert isinstance(result.failed['myapp-fail'], PipelineStageError)

    def test_command_runs_in_app_folder(self, ws):
        manifest = write_manifest(ws, "tasks:\n  - {name: touch, command: 'touch made.txt'}\n")
        tasker = manifest_to_tasker(manifest)

        assert asyncio.run(tasker.run()).succeeded
        assert (ws.app_base / 'made.txt').exists()
