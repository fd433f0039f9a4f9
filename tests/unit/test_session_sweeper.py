"""Unit tests for SessionSweeper."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

from review_api.services.session_sweeper import SessionSweeper


class TestSweepOnce:
    """Tests for a single sweep."""

    async def test_deletes_expired_sessions(self):
        sessions = MagicMock()
        sessions.delete_expired = AsyncMock(return_value=3)
        sweeper = SessionSweeper(interval_seconds=60, sessions=sessions)

        assert await sweeper.sweep_once() == 3
        sessions.delete_expired.assert_awaited_once()


class TestLifecycle:
    """Tests for start and stop."""

    async def test_start_runs_immediately_and_stop_cancels(self):
        sessions = MagicMock()
        sessions.delete_expired = AsyncMock(return_value=0)
        sweeper = SessionSweeper(interval_seconds=3600, sessions=sessions)

        sweeper.start()
        await asyncio.sleep(0.05)
        await sweeper.stop()

        sessions.delete_expired.assert_awaited_once()
        assert sweeper._task.done()

    async def test_errors_do_not_kill_the_loop(self):
        calls = []

        async def flaky_delete():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("db down")
            return 0

        sessions = MagicMock()
        sessions.delete_expired = flaky_delete
        sweeper = SessionSweeper(interval_seconds=0, sessions=sessions)

        sweeper.start()
        await asyncio.sleep(0.05)
        await sweeper.stop()

        assert len(calls) >= 2
