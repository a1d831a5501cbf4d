"""
Royalty Splitter - Error taxonomy

Every operation returns a ``(success, result)`` tuple. Failures carry one of
the numbered error codes below; the numbers are stable so that clients which
only see the wire representation can keep matching on them.
"""

from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Numbered error kinds returned by splitter operations."""

    NOT_AUTHORIZED = 100
    INVALID_WORK_ID = 101
    INVALID_SPLIT = 102
    INVALID_SHARE = 103
    INVALID_AMOUNT = 104
    INSUFFICIENT_FUNDS = 105
    SPLIT_ALREADY_DEFINED = 106
    SPLIT_NOT_FOUND = 107
    INVALID_PRINCIPAL = 108
    MAX_SPLITS_EXCEEDED = 109
    DUPLICATE_RECIPIENT = 110
    PAUSED = 111
    INVALID_UPDATE = 112
    UPDATE_NOT_ALLOWED = 113
    INVALID_PAUSE_STATE = 114
    INVALID_BASIS_POINTS = 115
    ARITHMETIC_OVERFLOW = 116
    ARITHMETIC_UNDERFLOW = 117
    INVALID_MIN_SHARE = 118
    INVALID_MAX_SHARE = 119
    OWNER_NOT_SET = 120

    @property
    def label(self) -> str:
        """CamelCase name used in result payloads (e.g. ``InvalidSplit``)."""
        return "".join(part.capitalize() for part in self.name.split("_"))


Result = tuple[bool, dict[str, Any]]


def failure(code: ErrorCode, **details: Any) -> Result:
    """Build a failed operation result."""
    result: dict[str, Any] = {"error": code.label, "code": int(code)}
    result.update(details)
    return False, result


def success(**payload: Any) -> Result:
    """Build a successful operation result."""
    return True, payload


def error_code_of(result: dict[str, Any]) -> ErrorCode | None:
    """Extract the ErrorCode from a failed result payload, if any."""
    code = result.get("code")
    if code is None:
        return None
    try:
        return ErrorCode(code)
    except ValueError:
        return None
