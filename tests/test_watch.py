"""Tests for GlobEventHandler and WatchCoordinator."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

from watchdog.events import (
    DirCreatedEvent,
    FileClosedEvent,
    FileCreatedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from tasker.engine import RunResult
from tasker.index import SourceIndex
from tasker.watch import GlobEventHandler, WatchCoordinator, WatchState


class TestGlobEventHandler:
    """Tests for event filtering."""

    def make(self, glob='/app/client/**/*.less'):
        calls = []
        handler = GlobEventHandler(glob, lambda g, p: calls.append((g, p)))
        return handler, calls

    def test_matching_modification(self):
        handler, calls = self.make()
        handler.dispatch(FileModifiedEvent('/app/client/a/site.less'))
        assert calls == [('/app/client/**/*.less', '/app/client/a/site.less')]

    def test_non_matching_path(self):
        handler, calls = self.make()
        handler.dispatch(FileCreatedEvent('/app/client/site.css'))
        assert calls == []

    def test_directory_events_ignored(self):
        handler, calls = self.make('/app/client/**/*')
        handler.dispatch(DirCreatedEvent('/app/client/new'))
        assert calls == []

    def test_close_events_ignored(self):
        handler, calls = self.make()
        handler.dispatch(FileClosedEvent('/app/client/site.less'))
        assert calls == []

    def test_move_uses_destination(self):
        handler, calls = self.make()
        handler.dispatch(FileMovedEvent('/app/client/.tmp123', '/app/client/site.less'))
        assert calls == [('/app/client/**/*.less', '/app/client/site.less')]


def make_coordinator(index=None):
    engine = MagicMock()
    engine.start = AsyncMock(return_value=RunResult())
    notifier = MagicMock()
    notifier.notify = AsyncMock(return_value=[])
    return WatchCoordinator(index or SourceIndex(), engine, notifier), engine, notifier


class TestDispatch:
    """Tests for WatchCoordinator.dispatch()."""

    def test_runs_tasks_then_notifies_once(self):
        index = SourceIndex()
        index.register('/app/client/**/*.less', 'myapp-css')
        index.register('/app/client/**/*.less', 'myapp-lint')
        index.register('/app/*.js', 'myapp-js')
        coordinator, engine, notifier = make_coordinator(index)

        asyncio.run(coordinator.dispatch('/app/client/**/*.less', '/app/client/x.less'))

        engine.start.assert_awaited_once_with(['myapp-css', 'myapp-lint'])
        notifier.notify.assert_awaited_once_with(['/app/client/x.less'])

    def test_notifies_even_if_rebuild_fails(self, caplog):
        index = SourceIndex()
        index.register('/app/*.js', 'myapp-js')
        coordinator, engine, notifier = make_coordinator(index)
        engine.start.side_effect = RuntimeError('engine down')

        asyncio.run(coordinator.dispatch('/app/*.js', '/app/a.js'))

        notifier.notify.assert_awaited_once_with(['/app/a.js'])
        assert 'rebuild after /app/a.js failed' in caplog.text


class TestWatch:
    """Tests for WatchCoordinator.watch()."""

    def test_watch_twice_warns(self, tmp_path, caplog):
        index = SourceIndex()
        index.register(f'{tmp_path}/*.js', 'myapp-js')
        coordinator, _, _ = make_coordinator(index)

        async def main():
            first = coordinator.watch()
            second = coordinator.watch()
            state = coordinator.state
            await coordinator.close()
            return first, second, state

        first, second, state = asyncio.run(main())

        assert first is True
        assert second is False
        assert state is WatchState.WATCHING
        assert coordinator.state is WatchState.IDLE
        assert 'watch() called more than once' in caplog.text

    def test_missing_directory_warns(self, tmp_path, caplog):
        index = SourceIndex()
        index.register(f'{tmp_path}/missing/*.js', 'myapp-js')
        coordinator, _, _ = make_coordinator(index)

        async def main():
            started = coordinator.watch()
            await coordinator.close()
            return started

        assert asyncio.run(main()) is True
        assert 'cannot watch' in caplog.text

    def test_close_waits_for_inflight_rebuild(self):
        """Test that close() lets a running dispatch finish its notification."""
        index = SourceIndex()
        index.register('/app/*.js', 'myapp-js')
        coordinator, engine, notifier = make_coordinator(index)

        async def slow_start(names):
            await asyncio.sleep(0.1)
            return RunResult(executed=list(names))

        engine.start.side_effect = slow_start

        async def main():
            coordinator.watch()
            coordinator._on_match('/app/*.js', '/app/a.js')
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            await coordinator.close()

        asyncio.run(main())

        notifier.notify.assert_awaited_once_with(['/app/a.js'])
        assert coordinator.state is WatchState.IDLE

    def test_needs_running_loop(self, caplog):
        coordinator, _, _ = make_coordinator()
        assert coordinator.watch() is False
        assert 'running event loop' in caplog.text

    def test_file_change_triggers_dispatch(self, tmp_path):
        index = SourceIndex()
        index.register(f'{tmp_path}/*.js', 'myapp-js')
        coordinator, engine, notifier = make_coordinator(index)

        async def main():
            coordinator.watch()
            try:
                await asyncio.sleep(0.2)
                (tmp_path / 'a.js').write_text('x')
                for _ in range(50):
                    if notifier.notify.await_count:
                        break
                    await asyncio.sleep(0.1)
            finally:
                await coordinator.close()

        asyncio.run(main())

        engine.start.assert_any_await(['myapp-js'])
        notifier.notify.assert_any_await([f'{tmp_path}/a.js'])
