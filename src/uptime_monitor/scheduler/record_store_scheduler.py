"""
Record store based implementation of the WorkScheduler interface.

This module provides the check loop of the engine: every cycle it lists all
checks of the record store, reads and validates each of them, and hands the
valid ones over as one batch. Cycles run with a fixed delay: the next
enumeration starts ``check_interval`` seconds after the previous batch was
handed over, whether or not its probes are finished.
"""

import asyncio
import logging
from typing import List, Optional

from uptime_monitor.contracts import RecordStore, WorkScheduler
from uptime_monitor.domain import CHECKS_COLLECTION, Check, Rejected
from uptime_monitor.validator import validate_check

# Module logger
logger = logging.getLogger(__name__)


class RecordStoreScheduler(WorkScheduler):
    """
    A WorkScheduler producing one batch of validated checks per cycle.

    The first batch is produced as soon as iteration starts. A record that
    cannot be read or does not validate is logged and skipped without
    affecting the others.
    """

    def __init__(
        self,
        instance_id: str,
        store: RecordStore,
        check_interval: int = 60,
        collection: str = CHECKS_COLLECTION,
    ) -> None:
        """
        Initializes a new RecordStoreScheduler instance.

        Args:
            instance_id: A unique identifier for this engine instance.
            store: The record store holding the checks.
            check_interval: Delay in seconds between two cycles.
            collection: The collection the checks are listed from.

        Raises:
            ValueError: If any of the parameters have invalid values.
        """
        if not isinstance(instance_id, str) or not instance_id:
            raise ValueError("instance_id must be provided and must be not blank.")

        if not isinstance(check_interval, (int, float)) or check_interval <= 0:
            raise ValueError("check_interval must be a positive number.")

        self._instance_id: str = instance_id
        self._store: RecordStore = store
        self._check_interval: float = check_interval
        self._collection: str = collection
        self._is_running: bool = False
        self._cycles: int = 0
        self._stop_event: asyncio.Event = asyncio.Event()

    async def start(self) -> None:
        """
        Prepares the scheduler to start yielding work.

        This method must be called before using the scheduler in an async for loop.
        """
        logger.info(f"Starting scheduler (check interval: {self._check_interval}s)...")
        self._is_running = True
        self._cycles = 0
        self._stop_event.clear()

    async def stop(self) -> None:
        """
        Stops the scheduler, interrupting the wait for the next cycle.
        """
        logger.info("Closing scheduler...")
        self._is_running = False
        self._stop_event.set()

    async def __anext__(self) -> List[Check]:
        """
        Waits for the next cycle and returns its batch of valid checks.

        Returns:
            List[Check]: The checks to probe, possibly empty.

        Raises:
            StopAsyncIteration: When the scheduler has been stopped.
        """
        if not self._is_running:
            raise StopAsyncIteration

        if self._cycles > 0:
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._check_interval)
            except asyncio.TimeoutError:
                pass
            if not self._is_running:
                raise StopAsyncIteration

        self._cycles += 1
        return await self.gather_checks()

    async def gather_checks(self) -> List[Check]:
        """
        Lists, reads and validates every check of the collection.

        Returns:
            List[Check]: The valid checks, in listing order.
        """
        listed = await self._store.list(self._collection)
        if not listed.ok:
            logger.error(f"Could not list the checks: {listed.error}")
            return []

        check_ids = listed.value or []
        if not check_ids:
            logger.info("Could not find any checks to process.")
            return []

        loaded = await asyncio.gather(*(self._load_check(check_id) for check_id in check_ids))
        batch = [check for check in loaded if check is not None]
        logger.debug(f"Cycle {self._cycles}: {len(batch)} of {len(check_ids)} checks scheduled.")
        return batch

    async def _load_check(self, check_id: str) -> Optional[Check]:
        """
        Reads and validates one check, isolating any failure to this id.
        """
        try:
            read = await self._store.read(self._collection, check_id)
            if not read.ok:
                logger.error(f"Could not read check {check_id}: {read.error}")
                return None

            validated = validate_check(read.value)
            if isinstance(validated, Rejected):
                logger.warning(f"Check {check_id} is not properly formatted, skipping it: {validated.reason}")
                return None

            return validated
        except Exception:
            logger.exception(f"Unexpected error while loading check {check_id}")
            return None
