"""
Domain models for the uptime monitoring engine.

This module defines the core data structures used throughout the application,
including checks, probe outcomes, audit log entries and the result wrapper
returned by every collaborator. These models serve as the foundation for the
engine's data flow.
"""

import json
import time
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional, Tuple

# Collection holding the check records in the record store
CHECKS_COLLECTION = "checks"


def epoch_millis() -> int:
    """Returns the current time in epoch milliseconds, the unit of every stored timestamp."""
    return int(time.time() * 1000)


class Protocol(str, Enum):
    """
    Transport protocols a check can be probed over.

    Inheriting from 'str' allows enum members to behave like strings,
    making them compatible with the persisted JSON representation.
    """

    HTTP = "http"
    HTTPS = "https"


class HttpMethod(str, Enum):
    """
    Defines supported HTTP methods as a type-safe enumeration.

    Values are lower case, as they are stored in check records. Use
    ``.value.upper()`` when building the outbound request.
    """

    GET = "get"
    POST = "post"
    PUT = "put"
    DELETE = "delete"


class CheckState(str, Enum):
    """Liveness classification of a check."""

    UP = "up"
    DOWN = "down"


class ProbeError(str, Enum):
    """Tagged failure of a probe attempt."""

    NETWORK_ERROR = "network-error"
    TIMEOUT = "timeout"


class Check(NamedTuple):
    """
    A validated check, ready to be scheduled.

    Instances are only produced by the check validator; the raw record read
    from the store is never used past validation.

    Attributes:
        id: Opaque 20 character identifier of the check.
        owner_phone: 10 digit phone number of the owning user.
        protocol: Protocol used to reach the target.
        url: Host and optional port, path and query, without the scheme.
        method: The HTTP method to use for the request.
        success_codes: HTTP status codes considered healthy.
        timeout_seconds: Hard timeout of one probe, between 1 and 5.
        state: Last derived state, ``down`` when never probed.
        last_checked_at: Epoch milliseconds of the last probe, or None.
    """

    id: str
    owner_phone: str
    protocol: Protocol
    url: str
    method: HttpMethod
    success_codes: Tuple[int, ...]
    timeout_seconds: int
    state: CheckState = CheckState.DOWN
    last_checked_at: Optional[int] = None

    def to_record(self) -> Dict[str, Any]:
        """
        Builds the persisted representation of the check.

        The returned dict replaces the stored record as a whole, so it must
        contain every field the engine is responsible for.
        """
        record: Dict[str, Any] = {
            "id": self.id,
            "ownerPhone": self.owner_phone,
            "protocol": self.protocol.value,
            "url": self.url,
            "method": self.method.value,
            "successCodes": list(self.success_codes),
            "timeoutSeconds": self.timeout_seconds,
            "state": self.state.value,
        }
        if self.last_checked_at is not None:
            record["lastCheckedAt"] = self.last_checked_at
        return record

    @property
    def display_target(self) -> str:
        return f"{self.method.value.upper()} {self.protocol.value}://{self.url}"


class Rejected(NamedTuple):
    """Returned by the validator for a record that must not be scheduled."""

    reason: str


class CheckOutcome(NamedTuple):
    """
    The classified result of a single probe.

    Attributes:
        error: The tagged failure, or None when a response was received.
        response_code: The HTTP status code received, or None.
        detail: Human readable error description, kept for the audit log only.
    """

    error: Optional[ProbeError] = None
    response_code: Optional[int] = None
    detail: Optional[str] = None

    def to_record(self) -> Dict[str, Any]:
        return {
            "error": self.error.value if self.error is not None else None,
            "responseCode": self.response_code,
            "detail": self.detail,
        }


class LogEntry(NamedTuple):
    """
    One line of a check's append-only audit log.

    Attributes:
        check: Snapshot of the check the decision was based on.
        outcome: The probe outcome.
        state: The derived state.
        alert: Whether the transition warranted an alert.
        time: Epoch milliseconds of the decision.
    """

    check: Check
    outcome: CheckOutcome
    state: CheckState
    alert: bool
    time: int

    def to_line(self) -> str:
        return json.dumps(
            {
                "check": self.check.to_record(),
                "outcome": self.outcome.to_record(),
                "state": self.state.value,
                "alert": self.alert,
                "time": self.time,
            }
        )


class RecordNotFoundError(LookupError):
    """Carried by a record store read or update of a missing record."""


class IOResult(NamedTuple):
    """
    Result of a collaborator operation.

    Record stores, append logs and notifiers report failures through this
    wrapper instead of raising, so the engine loops never see their exceptions.

    Attributes:
        value: The operation's payload, if it has one.
        error: The exception that made the operation fail, or None.
    """

    value: Any = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None
