"""
Unit tests for the PostgresRecordStore class.

This module contains tests for the PostgresRecordStore class, ensuring that
it issues the expected queries and reports database failures in its results.

The tests follow the Arrange-Act-Assert (AAA) pattern and use proper mocking
of all external dependencies to ensure true unit testing.
"""

import json
from typing import Tuple
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio
from asyncpg import Pool

from uptime_monitor.config.monitoring_context import MonitoringContext
from uptime_monitor.domain import RecordNotFoundError
from uptime_monitor.store.asyncpg_record_store import (
    CREATE_TABLE_QUERY,
    INSERT_QUERY,
    LIST_IDS_QUERY,
    READ_QUERY,
    UPDATE_QUERY,
    PostgresRecordStore,
    _affected_rows,
)


@pytest_asyncio.fixture
async def mock_pool() -> Tuple[MagicMock, AsyncMock]:
    """
    Creates a mock asyncpg Pool for testing.

    Returns:
        Tuple[MagicMock, AsyncMock]: A tuple containing the mock pool and the mock connection.
    """
    pool = MagicMock(spec=Pool)
    mock_conn = AsyncMock()

    # Mock the async context manager returned by pool.acquire()
    pool.acquire.return_value.__aenter__.return_value = mock_conn

    return pool, mock_conn


@pytest.mark.parametrize(
    "status, expected",
    [("UPDATE 1", 1), ("DELETE 0", 0), ("", 0), (None, 0), ("UPDATE x", 0)],
)
def test_affected_rows(status, expected):
    """
    Test that the row count is read from a command status.
    """
    # Act & Assert
    assert _affected_rows(status) == expected


@pytest.mark.asyncio
async def test_ensure_schema(mock_pool):
    """
    Test that the records table is created.
    """
    # Arrange
    pool, mock_conn = mock_pool
    store = PostgresRecordStore(pool=pool)

    # Act
    await store.ensure_schema()

    # Assert
    mock_conn.execute.assert_awaited_once_with(CREATE_TABLE_QUERY)


@pytest.mark.asyncio
async def test_list(mock_pool):
    """
    Test that list returns the ids of the collection.
    """
    # Arrange
    pool, mock_conn = mock_pool
    mock_conn.fetch.return_value = [{"id": "a"}, {"id": "b"}]
    store = PostgresRecordStore(pool=pool)

    # Act
    result = await store.list("checks")

    # Assert
    assert result.value == ["a", "b"]
    mock_conn.fetch.assert_awaited_once_with(LIST_IDS_QUERY, "checks")


@pytest.mark.asyncio
async def test_read_decodes_json_text(mock_pool):
    """
    Test that a JSONB value handed over as text is decoded.
    """
    # Arrange
    pool, mock_conn = mock_pool
    mock_conn.fetchval.return_value = '{"id": "abc"}'
    store = PostgresRecordStore(pool=pool)

    # Act
    result = await store.read("checks", "abc")

    # Assert
    assert result.value == {"id": "abc"}
    mock_conn.fetchval.assert_awaited_once_with(READ_QUERY, "checks", "abc")


@pytest.mark.asyncio
async def test_read_missing_record(mock_pool):
    """
    Test that a missing row is reported as RecordNotFoundError.
    """
    # Arrange
    pool, mock_conn = mock_pool
    mock_conn.fetchval.return_value = None
    store = PostgresRecordStore(pool=pool)

    # Act
    result = await store.read("checks", "abc")

    # Assert
    assert isinstance(result.error, RecordNotFoundError)


@pytest.mark.asyncio
async def test_create(mock_pool):
    """
    Test that create inserts the record as JSON.
    """
    # Arrange
    pool, mock_conn = mock_pool
    store = PostgresRecordStore(pool=pool)

    # Act
    result = await store.create("checks", "abc", {"id": "abc"})

    # Assert
    assert result.ok
    mock_conn.execute.assert_awaited_once_with(
        INSERT_QUERY, "checks", "abc", json.dumps({"id": "abc"})
    )


@pytest.mark.asyncio
async def test_update(mock_pool):
    """
    Test that update replaces the stored record.
    """
    # Arrange
    pool, mock_conn = mock_pool
    mock_conn.execute.return_value = "UPDATE 1"
    store = PostgresRecordStore(pool=pool)

    # Act
    result = await store.update("checks", "abc", {"state": "up"})

    # Assert
    assert result.ok
    mock_conn.execute.assert_awaited_once_with(
        UPDATE_QUERY, "checks", "abc", json.dumps({"state": "up"})
    )


@pytest.mark.asyncio
async def test_update_missing_record(mock_pool):
    """
    Test that an update touching no row is reported as RecordNotFoundError.
    """
    # Arrange
    pool, mock_conn = mock_pool
    mock_conn.execute.return_value = "UPDATE 0"
    store = PostgresRecordStore(pool=pool)

    # Act
    result = await store.update("checks", "abc", {})

    # Assert
    assert isinstance(result.error, RecordNotFoundError)


@pytest.mark.asyncio
async def test_delete_with_database_error(mock_pool):
    """
    Test that a database error is returned in the result, not raised.
    """
    # Arrange
    pool, mock_conn = mock_pool
    mock_conn.execute.side_effect = ConnectionError("connection lost")
    store = PostgresRecordStore(pool=pool)

    # Act
    result = await store.delete("checks", "abc")

    # Assert
    assert isinstance(result.error, ConnectionError)


def _postgres_context() -> MonitoringContext:
    return MonitoringContext(
        instance_id="test-instance",
        store_type="postgres",
        data_dir=".data",
        logs_dir=".logs",
        dsn="postgresql://localhost/test",
        db_pool_size=7,
        worker_number=5,
        queue_size=100,
        check_interval=60,
        rotation_interval=86400,
        twilio_account_sid="",
        twilio_auth_token="",
        twilio_from_phone="",
        logging_type="dev",
        logging_config_file="",
    )


@pytest.mark.asyncio
async def test_connect_opens_pool_and_prepares_table(mock_pool):
    """
    Test that connect sizes the pool from the context and creates the records table.
    """
    # Arrange
    pool, mock_conn = mock_pool
    pool.close = AsyncMock()

    with patch(
        "uptime_monitor.store.asyncpg_record_store.asyncpg.create_pool",
        new_callable=AsyncMock,
        return_value=pool,
    ) as mock_create_pool:
        # Act
        store = await PostgresRecordStore.connect(_postgres_context())

    # Assert
    assert isinstance(store, PostgresRecordStore)
    mock_create_pool.assert_awaited_once_with(dsn="postgresql://localhost/test", max_size=7)
    mock_conn.execute.assert_awaited_once_with(CREATE_TABLE_QUERY)
    pool.close.assert_not_awaited()


@pytest.mark.asyncio
async def test_connect_failure_closes_pool(mock_pool):
    """
    Test that the pool is closed and the error raised when the database is unreachable.
    """
    # Arrange
    pool, mock_conn = mock_pool
    pool.close = AsyncMock()
    mock_conn.execute.side_effect = ConnectionRefusedError("connection refused")

    with patch(
        "uptime_monitor.store.asyncpg_record_store.asyncpg.create_pool",
        new_callable=AsyncMock,
        return_value=pool,
    ):
        # Act & Assert
        with pytest.raises(ConnectionRefusedError):
            await PostgresRecordStore.connect(_postgres_context())

    pool.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_close_releases_pool(mock_pool):
    """
    Test that closing the store closes its pool.
    """
    # Arrange
    pool, _ = mock_pool
    pool.close = AsyncMock()
    store = PostgresRecordStore(pool=pool)

    # Act
    await store.close()

    # Assert
    pool.close.assert_awaited_once()
