"""
Unit tests for the UptimeEngine class.

The tests follow the Arrange-Act-Assert (AAA) pattern and use proper mocking
of all external dependencies to ensure true unit testing.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from uptime_monitor.engine import UptimeEngine
from uptime_monitor.rotation import LogRotator
from uptime_monitor.worker import MonitoringWorker


@pytest.mark.asyncio
async def test_run_starts_both_loops_and_stop_ends_them():
    """
    Test that run starts the rotation loop beside the check loop and stop cancels it.
    """
    # Arrange
    rotation_started = asyncio.Event()
    worker_released = asyncio.Event()

    async def rotate_forever() -> None:
        rotation_started.set()
        await asyncio.Event().wait()

    async def check_loop() -> None:
        await worker_released.wait()

    async def stop_worker() -> None:
        worker_released.set()

    worker = MagicMock(spec=MonitoringWorker)
    worker.start = AsyncMock(side_effect=check_loop)
    worker.stop = AsyncMock(side_effect=stop_worker)
    rotator = MagicMock(spec=LogRotator)
    rotator.run = MagicMock(side_effect=rotate_forever)
    engine = UptimeEngine(worker=worker, rotator=rotator)

    # Act
    running = asyncio.create_task(engine.run())
    await asyncio.wait_for(rotation_started.wait(), timeout=1)
    rotation_task = engine._rotation_task
    await engine.stop()
    await asyncio.wait_for(running, timeout=1)

    # Assert
    worker.start.assert_awaited_once()
    worker.stop.assert_awaited_once()
    assert rotation_task.cancelled()
    assert engine._rotation_task is None


@pytest.mark.asyncio
async def test_stop_before_run():
    """
    Test that stopping an engine that never ran only stops the worker.
    """
    # Arrange
    worker = MagicMock(spec=MonitoringWorker)
    worker.stop = AsyncMock()
    engine = UptimeEngine(worker=worker, rotator=MagicMock(spec=LogRotator))

    # Act
    await engine.stop()

    # Assert
    worker.stop.assert_awaited_once()
