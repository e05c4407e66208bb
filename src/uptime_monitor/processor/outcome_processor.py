"""
Outcome processing for the uptime monitoring engine.

This module turns a probe outcome into the next state of a check, decides
whether the change deserves an alert, and performs the side effects in the
required order: audit log entry, persistence of the updated check, then the
alert. Collaborator failures are logged and never interrupt the pipeline.
"""

import logging
from typing import Callable, Tuple

from uptime_monitor.contracts import AppendLog, Notifier, RecordStore, ResultProcessor
from uptime_monitor.domain import (
    CHECKS_COLLECTION,
    Check,
    CheckOutcome,
    CheckState,
    LogEntry,
    epoch_millis,
)
from uptime_monitor.locking import KeyedLock

# Module logger
logger = logging.getLogger(__name__)


def derive_state(check: Check, outcome: CheckOutcome) -> CheckState:
    """
    Classifies an outcome as up or down for a check.

    A check is up only when no error occurred and the response code is one of
    its success codes. An error always means down, even if a response code was
    recorded before it.
    """
    if (
        outcome.error is None
        and outcome.response_code is not None
        and outcome.response_code in check.success_codes
    ):
        return CheckState.UP
    return CheckState.DOWN


def is_alert_warranted(check: Check, new_state: CheckState) -> bool:
    """
    Tells whether moving ``check`` to ``new_state`` is a transition to alert on.

    A check that was never probed has no previous state to compare with, so
    its first outcome never alerts.
    """
    return check.last_checked_at is not None and check.state != new_state


def build_alert_message(check: Check) -> str:
    return f"Alert: Your check for {check.display_target} is currently {check.state.value}"


class OutcomeProcessor(ResultProcessor):
    """
    Applies probe outcomes to checks.

    For every outcome exactly one audit log entry is appended, under the lock
    of the check's log so it never interleaves with a rotation of that log.
    The updated check then replaces the stored record, and the owner is
    notified when the state changed.
    """

    def __init__(
        self,
        instance_id: str,
        store: RecordStore,
        append_log: AppendLog,
        notifier: Notifier,
        log_locks: KeyedLock,
        clock: Callable[[], int] = epoch_millis,
    ) -> None:
        """
        Initializes the processor.

        Args:
            instance_id: A unique identifier for this engine instance.
            store: The record store holding the checks.
            append_log: The per-check audit logs.
            notifier: Used to alert the owner of a check.
            log_locks: Locks shared with the log rotator, keyed by log id.
            clock: Returns the current time in epoch milliseconds.
        """
        self._instance_id: str = instance_id
        self._store: RecordStore = store
        self._append_log: AppendLog = append_log
        self._notifier: Notifier = notifier
        self._log_locks: KeyedLock = log_locks
        self._clock: Callable[[], int] = clock

    async def process(self, check: Check, outcome: CheckOutcome) -> Tuple[Check, bool]:
        """
        Derives the new state of a check and applies it.

        Args:
            check: The check as it was validated before the probe.
            outcome: The outcome of the probe.

        Returns:
            Tuple[Check, bool]: The updated check and whether an alert was warranted.
                The decision does not depend on the side effects succeeding.
        """
        new_state = derive_state(check, outcome)
        alert_warranted = is_alert_warranted(check, new_state)
        checked_at = self._clock()
        new_check = check._replace(state=new_state, last_checked_at=checked_at)

        await self._append_entry(
            LogEntry(
                check=check,
                outcome=outcome,
                state=new_state,
                alert=alert_warranted,
                time=checked_at,
            )
        )

        persisted = await self._persist(new_check)

        if not alert_warranted:
            logger.debug(f"Check {check.id} is still {new_state.value}, no alert needed.")
        elif persisted:
            await self._alert(new_check)
        else:
            # The stored state is unchanged, the next cycle detects the transition again
            logger.warning(f"Alert for check {check.id} skipped: its new state was not saved.")

        return new_check, alert_warranted

    async def _append_entry(self, entry: LogEntry) -> None:
        async with self._log_locks.hold(entry.check.id):
            result = await self._append_log.append(entry.check.id, entry.to_line())
        if not result.ok:
            logger.error(f"Could not append the log entry of check {entry.check.id}: {result.error}")

    async def _persist(self, check: Check) -> bool:
        result = await self._store.update(CHECKS_COLLECTION, check.id, check.to_record())
        if not result.ok:
            logger.error(f"Could not save the updated check {check.id}: {result.error}")
            return False
        return True

    async def _alert(self, check: Check) -> None:
        message = build_alert_message(check)
        result = await self._notifier.send(check.owner_phone, message)
        if result.ok:
            logger.info(f"Owner of check {check.id} alerted: {message}")
        else:
            logger.error(f"Could not alert the owner of check {check.id}: {result.error}")
