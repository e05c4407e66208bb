"""
Unit tests for the application entry point.

The tests follow the Arrange-Act-Assert (AAA) pattern and use proper mocking
of all external dependencies to ensure true unit testing.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from uptime_monitor.__main__ import build_notifier, main
from uptime_monitor.config.monitoring_context import MonitoringContext
from uptime_monitor.notifier.logging_notifier import LoggingNotifier
from uptime_monitor.notifier.twilio_notifier import TwilioNotifier
from uptime_monitor.store.asyncpg_record_store import PostgresRecordStore


def _context(tmp_path, **overrides) -> MonitoringContext:
    fields = dict(
        instance_id="test-instance",
        store_type="file",
        data_dir=str(tmp_path / "data"),
        logs_dir=str(tmp_path / "logs"),
        dsn="postgresql://localhost/test",
        db_pool_size=10,
        worker_number=2,
        queue_size=10,
        check_interval=60,
        rotation_interval=86400,
        twilio_account_sid="",
        twilio_auth_token="",
        twilio_from_phone="",
        logging_type="dev",
        logging_config_file="",
    )
    fields.update(overrides)
    return MonitoringContext(**fields)


def test_build_notifier_without_twilio_settings(tmp_path):
    """
    Test that alerts are only logged when Twilio is not configured.
    """
    # Act
    notifier = build_notifier(_context(tmp_path), MagicMock(spec=aiohttp.ClientSession))

    # Assert
    assert isinstance(notifier, LoggingNotifier)


def test_build_notifier_with_twilio_settings(tmp_path):
    """
    Test that the Twilio notifier is used once every setting is present.
    """
    # Arrange
    context = _context(
        tmp_path,
        twilio_account_sid="AC1",
        twilio_auth_token="token",
        twilio_from_phone="+15550000000",
    )

    # Act
    notifier = build_notifier(context, MagicMock(spec=aiohttp.ClientSession))

    # Assert
    assert isinstance(notifier, TwilioNotifier)


@pytest.mark.asyncio
async def test_main_with_invalid_store_type_closes_session(tmp_path):
    """
    Test that an unknown store type aborts startup after releasing the session.
    """
    # Arrange
    session = MagicMock(spec=aiohttp.ClientSession)
    session.close = AsyncMock()

    with patch("uptime_monitor.__main__.get_http_session", return_value=session):
        # Act & Assert
        with pytest.raises(ValueError, match="Invalid store type"):
            await main(_context(tmp_path, store_type="redis"))

    session.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_main_runs_and_stops_engine(tmp_path):
    """
    Test that main builds the file based engine, runs it and stops it on exit.
    """
    # Arrange
    session = MagicMock(spec=aiohttp.ClientSession)
    session.close = AsyncMock()

    with patch("uptime_monitor.__main__.get_http_session", return_value=session), patch(
        "uptime_monitor.__main__.UptimeEngine"
    ) as mock_engine_cls:
        engine = mock_engine_cls.return_value
        engine.run = AsyncMock()
        engine.stop = AsyncMock()

        # Act
        await main(_context(tmp_path))

    # Assert
    engine.run.assert_awaited_once()
    engine.stop.assert_awaited_once()
    session.close.assert_awaited_once()
    assert (tmp_path / "data" / "checks").is_dir()
    assert (tmp_path / "logs").is_dir()


@pytest.mark.asyncio
async def test_main_with_postgres_store_closes_it_on_exit(tmp_path):
    """
    Test that the postgres record store is connected at startup and closed at shutdown.
    """
    # Arrange
    session = MagicMock(spec=aiohttp.ClientSession)
    session.close = AsyncMock()
    postgres_store = MagicMock(spec=PostgresRecordStore)
    postgres_store.close = AsyncMock()

    with patch("uptime_monitor.__main__.get_http_session", return_value=session), patch(
        "uptime_monitor.__main__.PostgresRecordStore.connect",
        new_callable=AsyncMock,
        return_value=postgres_store,
    ) as mock_connect, patch("uptime_monitor.__main__.UptimeEngine") as mock_engine_cls:
        engine = mock_engine_cls.return_value
        engine.run = AsyncMock()
        engine.stop = AsyncMock()

        # Act
        await main(_context(tmp_path, store_type="postgres"))

    # Assert
    mock_connect.assert_awaited_once()
    engine.run.assert_awaited_once()
    postgres_store.close.assert_awaited_once()
    session.close.assert_awaited_once()
