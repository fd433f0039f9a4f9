"""Background reclamation of expired session rows."""

import asyncio
from typing import Optional

import structlog

from review_api.services.session_service import SessionService

logger = structlog.get_logger(__name__)


class SessionSweeper:
    """Periodically deletes sessions past their expiry.

    Lookups already ignore expired rows, so the cadence only affects storage.
    """

    def __init__(self, interval_seconds: int, sessions: Optional[SessionService] = None):
        self.interval_seconds = interval_seconds
        self.sessions = sessions or SessionService()
        self._task: Optional[asyncio.Task] = None
        self._running = False

    def start(self):
        """Start the sweep loop as an asyncio background task."""
        self._running = True
        self._task = asyncio.create_task(self._sweep_loop())
        logger.info("session_sweeper_started", interval_seconds=self.interval_seconds)

    async def stop(self):
        """Stop the sweep loop."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("session_sweeper_stopped")

    async def sweep_once(self) -> int:
        removed = await self.sessions.delete_expired()
        if removed:
            logger.info("expired_sessions_removed", count=removed)
        return removed

    async def _sweep_loop(self):
        while self._running:
            try:
                await self.sweep_once()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("session_sweep_error", error=str(e))

            try:
                await asyncio.sleep(self.interval_seconds)
            except asyncio.CancelledError:
                break
