"""
HTTP client configuration module for the uptime monitoring engine.

This module provides functionality to create the HTTP client session shared
by the prober and the SMS notifier, using the aiohttp library.
"""

import logging

import aiohttp

from uptime_monitor.config import MonitoringContext

# Module logger
logger = logging.getLogger(__name__)


def get_http_session(context: MonitoringContext) -> aiohttp.ClientSession:
    """
    Create and configure an HTTP client session based on the provided configuration.

    The connection limit follows the number of concurrent workers, so every
    worker can probe without waiting for a free connection. Per-request
    timeouts are set by the callers.

    Args:
        context: Configuration context containing HTTP client settings.

    Returns:
        aiohttp.ClientSession: A configured HTTP client session.
    """
    connector = aiohttp.TCPConnector(limit=max(context.worker_number, 1) + 1)
    logger.debug(f"HTTP session connection limit: {connector.limit}")
    return aiohttp.ClientSession(connector=connector)
