"""
HTTP prober implementation using the aiohttp library.

This module provides an implementation of the CheckProber interface that uses
the aiohttp library to issue exactly one request per probe. The timeout is
enforced by the transport, and the outcome is delivered through a
single-assignment slot so that a late error can never replace an outcome that
was already decided.
"""

import asyncio
import logging
from typing import Optional

import aiohttp
from yarl import URL

from uptime_monitor.contracts import CheckProber
from uptime_monitor.domain import Check, CheckOutcome, ProbeError

# Module logger
logger = logging.getLogger(__name__)


def build_target_url(check: Check) -> URL:
    """
    Builds the absolute URL probed for a check.

    The stored url holds everything but the scheme: the scheme and host select
    the transport, while the full path and query are sent with the request.

    Args:
        check: The check whose target is built.

    Returns:
        URL: The absolute URL, without fragment.

    Raises:
        ValueError: If the url does not contain a host.
    """
    url = URL(f"{check.protocol.value}://{check.url}")
    if not url.host:
        raise ValueError(f"Target '{check.url}' has no host")
    return url.with_fragment(None)


class OutcomeSlot:
    """
    A single-assignment slot for a probe outcome: the first writer wins.

    Backed by an asyncio.Future, so the outcome can be set once and only once.
    Later offers are ignored and reported as not accepted.
    """

    def __init__(self) -> None:
        self._future: "asyncio.Future[CheckOutcome]" = (
            asyncio.get_running_loop().create_future()
        )

    def offer(self, outcome: CheckOutcome) -> bool:
        """
        Stores the outcome if none was stored yet.

        Returns:
            bool: True if this outcome was accepted, False if one was already set.
        """
        if self._future.done():
            return False
        self._future.set_result(outcome)
        return True

    @property
    def delivered(self) -> bool:
        return self._future.done()

    def result(self) -> CheckOutcome:
        """
        Returns the stored outcome.

        Raises:
            asyncio.InvalidStateError: If no outcome was offered yet.
        """
        return self._future.result()


class AiohttpProber(CheckProber):
    """
    A concrete implementation of CheckProber using the aiohttp library.

    It uses a shared aiohttp ClientSession. Redirects are not followed: the
    status of the first response is the measured code.
    """

    def __init__(self, instance_id: str, session: aiohttp.ClientSession) -> None:
        """
        Initializes the prober with a shared aiohttp ClientSession.

        Args:
            instance_id: A unique identifier for this engine instance.
            session: An active aiohttp.ClientSession to be used for requests.
        """
        self._instance_id: str = instance_id
        self._session: aiohttp.ClientSession = session

    async def probe(self, check: Check) -> CheckOutcome:
        """
        Performs one HTTP request against the check's target.

        Three terminal conditions are possible, the first one wins: a
        response (its status code is recorded), a timeout after
        ``check.timeout_seconds``, or any other transport error.

        Args:
            check: The validated check to probe.

        Returns:
            CheckOutcome: The classified outcome of the request.
        """
        slot = OutcomeSlot()
        target: Optional[URL] = None

        try:
            target = build_target_url(check)
            logger.debug(f"Probing {check.method.value.upper()} {target} for check {check.id}")
            async with self._session.request(
                check.method.value.upper(),
                target,
                timeout=aiohttp.ClientTimeout(total=check.timeout_seconds),
                allow_redirects=False,
            ) as response:
                slot.offer(CheckOutcome(response_code=response.status))

        except asyncio.TimeoutError:
            slot.offer(
                CheckOutcome(
                    error=ProbeError.TIMEOUT,
                    detail=f"No response within {check.timeout_seconds}s",
                )
            )
        except Exception as e:
            slot.offer(
                CheckOutcome(
                    error=ProbeError.NETWORK_ERROR,
                    detail=f"{type(e).__name__}: {e}",
                )
            )

        outcome = slot.result()
        if outcome.error is None:
            logger.debug(f"Check {check.id} answered with status {outcome.response_code}")
        else:
            logger.debug(
                f"Check {check.id} failed ({outcome.error.value}) on {target or check.url}: "
                f"{outcome.detail}"
            )
        return outcome
