"""
Engine context for the uptime monitoring service.

The engine owns the two independent loops of the service, the check loop
and the log rotation loop. It is built once at startup, with every
collaborator passed in, and torn down at shutdown.
"""

import asyncio
import logging
from typing import Optional

from uptime_monitor.rotation import LogRotator
from uptime_monitor.worker import MonitoringWorker

# Module logger
logger = logging.getLogger(__name__)


class UptimeEngine:
    """Runs the check loop and the log rotation loop side by side."""

    def __init__(self, worker: MonitoringWorker, rotator: LogRotator) -> None:
        self._worker: MonitoringWorker = worker
        self._rotator: LogRotator = rotator
        self._rotation_task: Optional[asyncio.Task] = None

    async def run(self) -> None:
        """
        Starts both loops; both run a first pass right away.

        Returns when the check loop ends, i.e. after stop() was called.

        Raises:
            Exception: If the check loop cannot run.
        """
        logger.info("Background workers are running.")
        self._rotation_task = asyncio.create_task(self._rotator.run())
        await self._worker.start()

    async def stop(self) -> None:
        """
        Stops the check loop gracefully and cancels the rotation loop.
        """
        await self._worker.stop()

        if self._rotation_task is not None:
            self._rotation_task.cancel()
            await asyncio.gather(self._rotation_task, return_exceptions=True)
            self._rotation_task = None

        logger.info("Engine stopped.")
