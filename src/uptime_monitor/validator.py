"""
Check record validation.

Records are read from a store that can be edited by hand or written
partially, so every field is checked before a check is scheduled. The
validator is a pure function: it neither logs nor performs I/O, the caller
decides what to do with a rejection.
"""

import math
from typing import Any, Mapping, Optional, Tuple, Union

from uptime_monitor.domain import Check, CheckState, HttpMethod, Protocol, Rejected

CHECK_ID_LENGTH = 20
PHONE_LENGTH = 10
MIN_TIMEOUT_SECONDS = 1
MAX_TIMEOUT_SECONDS = 5


def _is_int(value: Any) -> bool:
    # bool is a subclass of int but never a valid number here
    return isinstance(value, int) and not isinstance(value, bool)


def _as_whole_number(value: Any) -> Optional[int]:
    if _is_int(value):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _fixed_length_string(value: Any, length: int) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value if len(value) == length else None


def _parse_success_codes(value: Any) -> Optional[Tuple[int, ...]]:
    if not isinstance(value, (list, tuple)) or not value:
        return None
    if not all(_is_int(code) for code in value):
        return None
    # Keep the first occurrence order, drop duplicates
    return tuple(dict.fromkeys(value))


def _parse_timeout(value: Any) -> Optional[int]:
    timeout = _as_whole_number(value)
    if timeout is None or not MIN_TIMEOUT_SECONDS <= timeout <= MAX_TIMEOUT_SECONDS:
        return None
    return timeout


def _parse_last_checked_at(value: Any) -> Optional[int]:
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if _is_int(value) or isinstance(value, float):
        return int(value) if value > 0 else None
    return None


def validate_check(raw: Any) -> Union[Check, Rejected]:
    """
    Parses a raw check record into a Check.

    Required fields (id, owner phone, protocol, url, method, success codes,
    timeout) reject the record when missing or invalid. ``state`` defaults to
    ``down`` and ``lastCheckedAt`` to absent. The legacy keys ``userPhone``
    and ``lastChecked`` are accepted in place of ``ownerPhone`` and
    ``lastCheckedAt``.

    Args:
        raw: The decoded record. Anything that is not a mapping is treated
            as an empty record.

    Returns:
        Union[Check, Rejected]: The typed check, or the reason it was rejected.
    """
    record: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}

    check_id = _fixed_length_string(record.get("id"), CHECK_ID_LENGTH)
    if check_id is None:
        return Rejected(f"id must be a string of {CHECK_ID_LENGTH} characters")

    owner_phone = _fixed_length_string(
        record.get("ownerPhone", record.get("userPhone")), PHONE_LENGTH
    )
    if owner_phone is None or not owner_phone.isdigit():
        return Rejected(f"ownerPhone must be a string of {PHONE_LENGTH} digits")

    try:
        protocol = Protocol(record.get("protocol"))
    except ValueError:
        return Rejected("protocol must be one of: http, https")

    url = record.get("url")
    if not isinstance(url, str) or not url.strip():
        return Rejected("url must be a non-empty string")

    try:
        method = HttpMethod(record.get("method"))
    except ValueError:
        return Rejected("method must be one of: get, post, put, delete")

    success_codes = _parse_success_codes(record.get("successCodes"))
    if success_codes is None:
        return Rejected("successCodes must be a non-empty list of integers")

    timeout_seconds = _parse_timeout(record.get("timeoutSeconds"))
    if timeout_seconds is None:
        return Rejected(
            f"timeoutSeconds must be a whole number between "
            f"{MIN_TIMEOUT_SECONDS} and {MAX_TIMEOUT_SECONDS}"
        )

    # Fields the engine fills in itself may be missing on a fresh check
    try:
        state = CheckState(record.get("state"))
    except ValueError:
        state = CheckState.DOWN

    last_checked_at = _parse_last_checked_at(
        record.get("lastCheckedAt", record.get("lastChecked"))
    )

    return Check(
        id=check_id,
        owner_phone=owner_phone,
        protocol=protocol,
        url=url.strip(),
        method=method,
        success_codes=success_codes,
        timeout_seconds=timeout_seconds,
        state=state,
        last_checked_at=last_checked_at,
    )
