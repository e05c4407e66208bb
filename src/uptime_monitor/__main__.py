"""
Main entry point for the uptime monitoring engine.

This module initializes and runs the engine. It sets up logging, creates the
HTTP session and the record store, wires the engine components together, and
handles graceful shutdown when the application is terminated.
"""

import asyncio
import logging
import os
from typing import Optional

import aiohttp

from uptime_monitor.applog.file_append_log import FileAppendLog
from uptime_monitor.config import MonitoringContext, get_context
from uptime_monitor.config.constants import STORE_TYPE_FILE, STORE_TYPE_POSTGRES
from uptime_monitor.config.http_config import get_http_session
from uptime_monitor.config.logging_config import configure_logging
from uptime_monitor.contracts import Notifier, RecordStore
from uptime_monitor.domain import CHECKS_COLLECTION
from uptime_monitor.engine import UptimeEngine
from uptime_monitor.locking import KeyedLock
from uptime_monitor.notifier.logging_notifier import LoggingNotifier
from uptime_monitor.notifier.twilio_notifier import TwilioNotifier
from uptime_monitor.processor.outcome_processor import OutcomeProcessor
from uptime_monitor.prober.aiohttp_prober import AiohttpProber
from uptime_monitor.rotation import LogRotator
from uptime_monitor.scheduler.record_store_scheduler import RecordStoreScheduler
from uptime_monitor.store.asyncpg_record_store import PostgresRecordStore
from uptime_monitor.store.file_record_store import FileRecordStore
from uptime_monitor.worker import MonitoringWorker


def build_notifier(context: MonitoringContext, http_session: aiohttp.ClientSession) -> Notifier:
    """
    Returns the Twilio notifier when it is fully configured, a log-only one otherwise.
    """
    if context.sms_enabled:
        return TwilioNotifier(
            session=http_session,
            account_sid=context.twilio_account_sid,
            auth_token=context.twilio_auth_token,
            from_phone=context.twilio_from_phone,
        )
    logging.getLogger(__name__).warning("Twilio is not configured, alerts will only be logged.")
    return LoggingNotifier()


async def main(context: MonitoringContext) -> None:
    """
    Set up and run the uptime monitoring engine.

    This function initializes all components of the engine:
    1. Creates an HTTP session for probes and SMS alerts
    2. Creates the record store (JSON files or PostgreSQL) and the audit logs
    3. Creates the scheduler, prober, processor and log rotator
    4. Starts the engine
    5. Handles graceful shutdown when the application is terminated

    Args:
        context: Configuration context containing all application settings.

    Raises:
        ValueError: If the store type is unknown.
        Exception: If a resource cannot be initialized; startup is aborted.
    """
    logger: logging.Logger = logging.getLogger(__name__)
    logger.info("Starting application...")
    instance_id: str = context.instance_id

    http_session: Optional[aiohttp.ClientSession] = None
    postgres_store: Optional[PostgresRecordStore] = None
    engine: Optional[UptimeEngine] = None

    try:
        http_session = get_http_session(context)
        logger.info("configured: http_session")

        store: RecordStore
        if context.store_type == STORE_TYPE_POSTGRES:
            postgres_store = await PostgresRecordStore.connect(context)
            store = postgres_store
            logger.info("initialized: postgres record store")
        elif context.store_type == STORE_TYPE_FILE:
            os.makedirs(os.path.join(context.data_dir, CHECKS_COLLECTION), exist_ok=True)
            store = FileRecordStore(base_dir=context.data_dir)
            logger.info(f"initialized: file record store in {context.data_dir}")
        else:
            raise ValueError(f"Invalid store type: {context.store_type}")

        os.makedirs(context.logs_dir, exist_ok=True)
        append_log = FileAppendLog(base_dir=context.logs_dir)
        log_locks = KeyedLock()

        worker = MonitoringWorker(
            instance_id=instance_id,
            num_workers=context.worker_number,
            queue_size=context.queue_size,
            scheduler=RecordStoreScheduler(
                instance_id=instance_id,
                store=store,
                check_interval=context.check_interval,
            ),
            prober=AiohttpProber(instance_id=instance_id, session=http_session),
            processor=OutcomeProcessor(
                instance_id=instance_id,
                store=store,
                append_log=append_log,
                notifier=build_notifier(context, http_session),
                log_locks=log_locks,
            ),
        )
        rotator = LogRotator(
            instance_id=instance_id,
            append_log=append_log,
            log_locks=log_locks,
            rotation_interval=context.rotation_interval,
        )
        engine = UptimeEngine(worker=worker, rotator=rotator)

        logger.info("Engine initialized. Starting monitoring loops...")
        await engine.run()

    except asyncio.CancelledError:
        logger.info("Application shutdown requested.")
    finally:
        # Ensure all resources are properly closed during shutdown
        logger.info("Shutting down resources...")
        if engine:
            await engine.stop()
        if http_session:
            await http_session.close()
        if postgres_store:
            await postgres_store.close()
        logger.info("Shutdown complete.")


def run() -> None:
    try:
        # Parse command-line arguments and environment variables
        uptime_monitor_context: MonitoringContext = get_context()

        # Configure logging based on the context
        configure_logging(uptime_monitor_context)

        # Run the main application
        asyncio.run(main(uptime_monitor_context))
    except KeyboardInterrupt:
        logging.info("Shutdown initiated by user (Ctrl+C).")


if __name__ == "__main__":
    run()
