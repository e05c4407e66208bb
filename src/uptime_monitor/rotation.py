"""
Log rotation loop of the uptime monitoring engine.

Every rotation compresses each live audit log into a timestamped archive
and truncates the live log once the archive is safely written. A log whose
compression or truncation fails is left as it is and reported; the other
logs are rotated regardless.
"""

import asyncio
import logging
from typing import Callable, List, NamedTuple

from uptime_monitor.contracts import AppendLog
from uptime_monitor.domain import epoch_millis
from uptime_monitor.locking import KeyedLock

# Module logger
logger = logging.getLogger(__name__)


class RotationReport(NamedTuple):
    """
    Summary of one rotation pass.

    Attributes:
        rotated: Ids of the logs compressed and truncated.
        failed: Ids of the logs left untouched because a step failed.
    """

    rotated: List[str]
    failed: List[str]


class LogRotator:
    """
    Rotates the append logs on a fixed period.

    Each log is rotated while holding its lock from the shared KeyedLock, so
    no audit entry can be appended between the compression and the
    truncation of that log.
    """

    def __init__(
        self,
        instance_id: str,
        append_log: AppendLog,
        log_locks: KeyedLock,
        rotation_interval: int = 60 * 60 * 24,
        clock: Callable[[], int] = epoch_millis,
    ) -> None:
        """
        Args:
            instance_id: A unique identifier for this engine instance.
            append_log: The append logs to rotate.
            log_locks: Locks shared with the outcome processor, keyed by log id.
            rotation_interval: Delay in seconds between two rotations.
            clock: Returns the current time in epoch milliseconds, used in archive ids.

        Raises:
            ValueError: If rotation_interval is not positive.
        """
        if not isinstance(rotation_interval, (int, float)) or rotation_interval <= 0:
            raise ValueError("rotation_interval must be a positive number.")

        self._instance_id: str = instance_id
        self._append_log: AppendLog = append_log
        self._log_locks: KeyedLock = log_locks
        self._rotation_interval: float = rotation_interval
        self._clock: Callable[[], int] = clock

    async def run(self) -> None:
        """
        Rotates immediately, then once per rotation interval, until cancelled.
        """
        logger.info(f"Starting log rotation (interval: {self._rotation_interval}s)...")
        while True:
            try:
                await self.rotate_all()
            except Exception:
                logger.exception("Unexpected error during log rotation")
            await asyncio.sleep(self._rotation_interval)

    async def rotate_all(self) -> RotationReport:
        """
        Rotates every live log.

        Returns:
            RotationReport: Which logs were rotated and which failed.
        """
        listed = await self._append_log.list(include_archived=False)
        if not listed.ok:
            logger.error(f"Could not list the logs to rotate: {listed.error}")
            return RotationReport(rotated=[], failed=[])

        log_ids: List[str] = listed.value or []
        if not log_ids:
            logger.info("Could not find any logs to rotate.")
            return RotationReport(rotated=[], failed=[])

        results = await asyncio.gather(*(self.rotate(log_id) for log_id in log_ids))

        report = RotationReport(
            rotated=[log_id for log_id, ok in zip(log_ids, results) if ok],
            failed=[log_id for log_id, ok in zip(log_ids, results) if not ok],
        )
        logger.info(f"Rotated {len(report.rotated)} logs, {len(report.failed)} failed.")
        return report

    async def rotate(self, log_id: str) -> bool:
        """
        Compresses one live log into ``<log_id>-<epoch ms>`` and truncates it.

        Returns:
            bool: True if both steps succeeded.
        """
        archive_id = f"{log_id}-{self._clock()}"
        async with self._log_locks.hold(log_id):
            compressed = await self._append_log.compress(log_id, archive_id)
            if not compressed.ok:
                logger.error(f"Could not compress log {log_id}: {compressed.error}")
                return False

            truncated = await self._append_log.truncate(log_id)
            if not truncated.ok:
                logger.error(f"Could not truncate log {log_id}: {truncated.error}")
                return False

        logger.debug(f"Log {log_id} rotated into {archive_id}.")
        return True
