"""
Check loop of the uptime monitoring engine.

This module provides the MonitoringWorker class, which drives the per-check
pipeline by coordinating the scheduler, prober, and processor components.
It implements a producer-consumer pattern with a queue for backpressure control.
"""

import asyncio
import logging
from asyncio import Queue, Task
from typing import List, Optional, Set

from .contracts import CheckProber, ResultProcessor, WorkScheduler
from .domain import Check


class MonitoringWorker:
    """
    Coordinates the monitoring workflow using a producer-consumer pattern.

    This class manages a pool of worker tasks that consume checks from a
    queue. The checks are produced by a scheduler, probed by a prober and
    their outcomes applied by a result processor. Within one pipeline the
    probe always completes before the outcome is processed; distinct checks
    are processed concurrently.
    """

    def __init__(
        self,
        instance_id: str,
        scheduler: WorkScheduler,
        prober: CheckProber,
        processor: ResultProcessor,
        num_workers: int,
        queue_size: int,
        queue_size_monitoring_interval: int = 20,
    ) -> None:
        """
        Initializes a new MonitoringWorker instance.

        Args:
            instance_id: A unique identifier for this engine instance.
            scheduler: Component that provides the checks of each cycle.
            prober: Component that performs the HTTP probes.
            processor: Component that applies the probe outcomes.
            num_workers: Number of concurrent worker tasks to create.
            queue_size: Maximum size of the work queue before backpressure is applied.
        """
        self._instance_id: str = instance_id
        self._scheduler: WorkScheduler = scheduler
        self._prober: CheckProber = prober
        self._processor: ResultProcessor = processor
        self._num_workers: int = num_workers
        self._logger: logging.Logger = logging.getLogger(__name__)
        # The queue provides backpressure. The producer will pause if the queue is full.
        self._queue: Queue[Check] = Queue(maxsize=queue_size)
        self._queue_size_monitoring_interval: int = queue_size_monitoring_interval
        # Ids queued or in flight; a check never has two pipelines at once
        self._pending_ids: Set[str] = set()
        self._worker_tasks: List[Task] = []
        self._monitor_task: Optional[Task] = None

    async def _executor(self, worker_num: int) -> None:
        """
        Consumer task that processes checks from the queue.

        Args:
            worker_num: The identifier number of this worker task.
        """
        worker_logger: logging.Logger = logging.getLogger(f"{__name__}.executor-{worker_num}")

        while True:
            try:
                # 1. Wait for an item from the queue
                check: Check = await self._queue.get()

                # 2. Probe, then apply the outcome
                try:
                    outcome = await self._prober.probe(check)
                    await self._processor.process(check, outcome)
                except Exception as e:
                    worker_logger.exception(f"Pipeline failed for check {check.id} with error: {e}")
                finally:
                    self._pending_ids.discard(check.id)

                # 3. Notify the queue that the item is done
                self._queue.task_done()

            except asyncio.CancelledError:
                worker_logger.info("Stopping.")
                break

    async def _monitor_queue(self) -> None:
        """
        A task that monitors the queue size and logs it periodically.
        """
        monitor_logger: logging.Logger = logging.getLogger(f"{__name__}.queue-monitor")

        while True:
            try:
                await asyncio.sleep(self._queue_size_monitoring_interval)
                qsize = self._queue.qsize()
                if self._queue.maxsize > 0 and qsize > self._queue.maxsize * 0.9:
                    monitor_logger.warning(
                        f"Queue size ({qsize}) is above 90% of capacity ({self._queue.maxsize})"
                    )
                else:
                    monitor_logger.debug(f"Current queue size: {qsize}")
            except asyncio.CancelledError:
                monitor_logger.info("Shutting down.")
                break

    async def submit(self, check: Check) -> bool:
        """
        Enqueues one check unless a pipeline for its id is already pending.

        Returns:
            bool: True if the check was enqueued.
        """
        if check.id in self._pending_ids:
            self._logger.warning(
                f"Check {check.id} is still being processed from a previous cycle, skipping it."
            )
            return False
        self._pending_ids.add(check.id)
        await self._queue.put(check)
        return True

    async def start(self) -> None:
        """
        Starts the producer and all the worker (consumer) tasks.

        Returns once the scheduler stops yielding batches.

        Raises:
            Exception: If the producer loop fails for any reason.
        """
        self._logger.info(f"Starting monitoring worker with {self._num_workers} workers.")

        # 1. Start all the consumer workers in the background
        self._monitor_task = asyncio.create_task(self._monitor_queue())
        self._worker_tasks = [
            asyncio.create_task(self._executor(i + 1)) for i in range(self._num_workers)
        ]

        # 2. Start the producer loop
        try:
            await self._scheduler.start()

            async for batch in self._scheduler:
                if not batch:
                    continue

                self._logger.debug(f"Producer adding {len(batch)} checks to the queue.")
                for check in batch:
                    await self.submit(check)

        except Exception as e:
            self._logger.error(f"Producer loop failed: {e}")
            raise

    async def stop(self) -> None:
        """
        Gracefully stops all worker tasks.

        This method implements a clean shutdown sequence:
        1. Stop the scheduler to prevent new work from being added
        2. Wait for all queued checks to complete
        3. Cancel all background worker tasks
        4. Wait for all tasks to acknowledge cancellation
        """
        self._logger.info("Initiating graceful shutdown...")

        self._logger.info("Stopping scheduler...")
        await self._scheduler.stop()

        # In-flight probes are bounded by their own timeouts
        self._logger.info(f"Waiting for {self._queue.qsize()} pending checks to complete...")
        await self._queue.join()
        self._logger.info("All pending checks completed")

        all_background_tasks = list(self._worker_tasks)
        if self._monitor_task is not None:
            all_background_tasks.append(self._monitor_task)
        self._logger.info(f"Cancelling {len(all_background_tasks)} background tasks...")

        for task in all_background_tasks:
            task.cancel()

        await asyncio.gather(*all_background_tasks, return_exceptions=True)

        self._logger.info("Worker shutdown complete")
