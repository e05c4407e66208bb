"""
Notifier that only writes alerts to the application log.

Used when no SMS provider is configured, so alerts stay visible in the
logs instead of being dropped.
"""

import logging

from uptime_monitor.contracts import Notifier
from uptime_monitor.domain import IOResult

# Module logger
logger = logging.getLogger(__name__)


class LoggingNotifier(Notifier):
    """A Notifier that logs every alert at warning level."""

    async def send(self, phone: str, message: str) -> IOResult:
        logger.warning(f"ALERT -> {phone}: {message}")
        return IOResult()
