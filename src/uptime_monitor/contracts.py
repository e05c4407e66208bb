"""
Core interfaces for the uptime monitoring engine.

This module defines the abstract base classes that form the foundation of the
engine's architecture: the scheduler and prober driven by the worker, and the
collaborators (record store, append log, notifier) the outcome processor and
the log rotator talk to. Collaborators report failures through ``IOResult``
and never raise across these interfaces.
"""

import abc
from typing import Any, AsyncIterator, Dict, List, Tuple

from .domain import Check, CheckOutcome, IOResult


class WorkScheduler(abc.ABC):
    """
    Abstract interface for a work scheduler.

    Its responsibility is to provide an asynchronous stream of validated
    'Check' batches that need to be probed.
    """

    @abc.abstractmethod
    async def start(self) -> None:
        """
        Prepares the scheduler to start yielding work.

        This method should be called before using the scheduler in an async for loop.
        """
        pass

    @abc.abstractmethod
    async def stop(self) -> None:
        """
        Gracefully stops the scheduler.

        A pending wait for the next cycle is interrupted and iteration ends.
        """
        pass

    def __aiter__(self) -> AsyncIterator[List[Check]]:
        return self

    @abc.abstractmethod
    async def __anext__(self) -> List[Check]:
        """
        Waits for and returns the next batch of work.

        Returns:
            List[Check]: The checks to probe in this cycle.

        Raises:
            StopAsyncIteration: When the scheduler has been stopped.
        """
        raise StopAsyncIteration


class CheckProber(abc.ABC):
    """
    Abstract interface for a component that probes a single check.

    Its responsibility is to encapsulate the network I/O for a given Check
    and return a classified outcome.
    """

    @abc.abstractmethod
    async def probe(self, check: Check) -> CheckOutcome:
        """
        Issues exactly one request against the check's target.

        Args:
            check: The validated check to probe.

        Returns:
            CheckOutcome: The response code, or the tagged failure.

        Raises:
            Exception: Implementations must classify network errors and
                timeouts into the outcome rather than raising them.
        """
        pass


class ResultProcessor(abc.ABC):
    """
    Abstract interface for a component that acts on the outcome of a probe.

    It turns the outcome into the next state of the check and performs the
    side effects that go with it: persistence, audit logging, alerting.
    """

    @abc.abstractmethod
    async def process(self, check: Check, outcome: CheckOutcome) -> Tuple[Check, bool]:
        """
        Processes a single probe outcome.

        Args:
            check: The check as it was validated before the probe.
            outcome: The outcome of the probe.

        Returns:
            Tuple[Check, bool]: The updated check and whether an alert was warranted.
        """
        pass


class RecordStore(abc.ABC):
    """Key-value persistence of JSON-like records keyed by (collection, id)."""

    @abc.abstractmethod
    async def list(self, collection: str) -> IOResult:
        """Returns the ids in the collection as ``IOResult(value=[...])``."""
        pass

    @abc.abstractmethod
    async def read(self, collection: str, record_id: str) -> IOResult:
        """
        Reads one record.

        A missing record is reported with a ``RecordNotFoundError``.
        """
        pass

    @abc.abstractmethod
    async def create(self, collection: str, record_id: str, record: Dict[str, Any]) -> IOResult:
        """Stores a new record, failing if the id is already taken."""
        pass

    @abc.abstractmethod
    async def update(self, collection: str, record_id: str, record: Dict[str, Any]) -> IOResult:
        """Replaces an existing record as a whole, without merging."""
        pass

    @abc.abstractmethod
    async def delete(self, collection: str, record_id: str) -> IOResult:
        pass


class AppendLog(abc.ABC):
    """Per-id append-only text logs with compress, truncate and list operations."""

    @abc.abstractmethod
    async def append(self, log_id: str, line: str) -> IOResult:
        """Appends one line, creating the log if needed."""
        pass

    @abc.abstractmethod
    async def list(self, include_archived: bool = False) -> IOResult:
        """Returns the ids of the live logs, and of the archives if asked."""
        pass

    @abc.abstractmethod
    async def compress(self, log_id: str, archive_id: str) -> IOResult:
        """Writes the content of a live log into a new archive."""
        pass

    @abc.abstractmethod
    async def decompress(self, archive_id: str) -> IOResult:
        """Returns the text of an archive."""
        pass

    @abc.abstractmethod
    async def truncate(self, log_id: str) -> IOResult:
        """Empties a live log."""
        pass


class Notifier(abc.ABC):
    """Sends a one-line text alert to a user identified by phone number."""

    @abc.abstractmethod
    async def send(self, phone: str, message: str) -> IOResult:
        pass
