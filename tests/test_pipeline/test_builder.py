"""Tests for PipelineBuilder and Pipeline."""

import asyncio

import pytest

from tasker.config import AppContext, TaskerConfig
from tasker.destinations import DestinationResolver
from tasker.exceptions import ConfigurationError
from tasker.pipeline import Concat, DestWriter, FunctionTransform, PipelineBuilder


def make_builder(root, vhosts=('a.test', 'b.test')):
    resolver = DestinationResolver(
        TaskerConfig(path=str(root)),
        AppContext(name='myapp', base=str(root / 'apps' / 'myapp'), vhosts=tuple(vhosts)),
    )
    return PipelineBuilder(resolver)


class TestPipeTo:
    """Tests for PipelineBuilder.pipe_to() / dest()."""

    def test_one_writer_per_vhost(self, tmp_path):
        writers = make_builder(tmp_path).pipe_to()
        assert [w.key for w in writers] == [
            f'{tmp_path}/public/sites/a.test',
            f'{tmp_path}/public/sites/b.test',
        ]

    def test_override(self, tmp_path):
        writers = make_builder(tmp_path).pipe_to('/tmp/elsewhere')
        assert [w.key for w in writers] == ['/tmp/elsewhere']

    def test_no_destination(self, tmp_path):
        with pytest.raises(ConfigurationError):
            make_builder(tmp_path, vhosts=[]).pipe_to()

    def test_dest(self, tmp_path):
        writer = make_builder(tmp_path).dest(str(tmp_path / 'x'))
        assert isinstance(writer, DestWriter)
        assert writer.key == str(tmp_path / 'x')


class TestPipelineRun:
    """Tests for composed pipelines."""

    def test_broadcast_identical_output(self, ws):
        ws.create_file('js/a.js', 'a')
        ws.create_file('js/b.js', 'b')
        builder = make_builder(ws.root)

        pipeline = builder.compose(
            'myapp-js',
            sources=[f'{ws.app_base}/js/*.js'],
            stages=[Concat('bundle.js', separator=';')],
        )
        files = asyncio.run(pipeline.run())

        assert [f.relative for f in files] == ['bundle.js']
        assert ws.site('a.test', 'bundle.js').read_text() == 'a;b'
        assert ws.site('b.test', 'bundle.js').read_text() == 'a;b'

    def test_stage_error_is_logged_not_raised(self, ws, caplog):
        ws.create_file('x.js', 'x')

        def broken(f):
            raise RuntimeError('bad stage')

        pipeline = make_builder(ws.root).compose(
            'myapp-x', sources=[f'{ws.app_base}/*.js'], stages=[FunctionTransform(broken)],
        )

        assert asyncio.run(pipeline.run()) is None
        assert 'pipeline myapp-x failed: bad stage' in caplog.text

    def test_writer_error_is_logged(self, ws, caplog):
        ws.create_file('x.js', 'x')
        ws.site('b.test').parent.mkdir(parents=True)
        ws.site('b.test').write_text('in the way')

        pipeline = make_builder(ws.root).compose(
            'myapp-x', sources=[f'{ws.app_base}/*.js'], stages=[],
        )

        assert asyncio.run(pipeline.run()) is None
        assert ws.site('a.test', 'x.js').read_text() == 'x'
        assert 'pipeline myapp-x failed' in caplog.text

    def test_compose_without_destination(self, tmp_path):
        with pytest.raises(ConfigurationError):
            make_builder(tmp_path, vhosts=[]).compose('myapp-x', sources=[], stages=[])
