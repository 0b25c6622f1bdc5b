"""Background task for expiring idle upload sessions."""

import asyncio
import logging

from server.config import CLEANUP_INTERVAL
from server.upload_sessions import UploadSessionStore

logger = logging.getLogger(__name__)


class ExpiredSessionCleaner:
    """
    Background task that periodically drops upload sessions left idle.
    """

    def __init__(self, store: UploadSessionStore, interval_seconds: float = CLEANUP_INTERVAL):
        """
        Initialize cleaner task.

        Args:
            store: Session store to sweep
            interval_seconds: Time between sweeps (default 60 seconds)
        """
        self.store = store
        self.interval_seconds = interval_seconds
        self._running = False
        self._task = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the background cleanup task."""
        if self._running:
            logger.warning("Cleanup task already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info(f"Started expired session cleanup task (interval: {self.interval_seconds}s)")

    async def stop(self) -> None:
        """Stop the background cleanup task."""
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        logger.info("Stopped expired session cleanup task")

    async def _run(self) -> None:
        """Main loop for cleanup task."""
        while self._running:
            try:
                await asyncio.sleep(self.interval_seconds)

                if not self._running:
                    break

                self.cleanup_cycle()

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in cleanup task: {e}", exc_info=True)

    def cleanup_cycle(self) -> list[str]:
        """Execute one sweep and return the expired session ids."""
        expired = self.store.expire_stale()
        if expired:
            logger.info(f"Cleanup cycle complete: {len(expired)} expired, {len(self.store)} active")
        else:
            logger.debug(f"Cleanup cycle complete: nothing expired, {len(self.store)} active")
        return expired
