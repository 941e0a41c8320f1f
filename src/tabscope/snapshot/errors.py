"""
Snapshot error kinds, numeric codes and exception hierarchy.

Exception Hierarchy:
    SnapshotError (base)
    ├── ChannelFailure
    ├── AmbiguousResponse
    ├── MalformedPayload
    ├── EmptyResult
    └── NodeProcessingError

`NodeProcessingError` never leaves the traversal: it is caught per element,
logged, and the element is skipped. The other kinds surface to callers as
an error envelope (see `SnapshotError.to_envelope`).
"""

from __future__ import annotations

import time
from enum import Enum, IntEnum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    CHANNEL_FAILURE = "channel_failure"
    AMBIGUOUS_RESPONSE = "ambiguous_response"
    MALFORMED_PAYLOAD = "malformed_payload"
    EMPTY_RESULT = "empty_result"
    NODE_PROCESSING = "node_processing"


class ErrorCode(IntEnum):
    """Numeric codes shared with the command line exit status."""

    OK = 0
    INVALID_INPUT = 10
    INVALID_JSON = 17
    PERMISSION_DENIED = 30
    SCRIPT_TIMEOUT = 42
    CHROME_NOT_FOUND = 50
    TAB_NOT_FOUND = 53
    JAVASCRIPT_ERROR = 57
    APPLESCRIPT_ERROR = 90
    UNKNOWN_ERROR = 99


def _now_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


class SnapshotError(Exception):
    """Base exception for snapshot failures.

    Attributes:
        kind: Machine-readable error kind
        code: Numeric error code
        context: Additional context dictionary
    """

    kind: ErrorKind = ErrorKind.CHANNEL_FAILURE
    default_code: ErrorCode = ErrorCode.UNKNOWN_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = ErrorCode(code) if code is not None else self.default_code
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "kind": self.kind.value,
            "code": int(self.code),
            "message": self.message,
            **self.context,
        }

    def to_envelope(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error": self.message,
            "code": int(self.code),
            "kind": self.kind.value,
            "timestamp": _now_iso(),
        }


class ChannelFailure(SnapshotError):
    """The execution channel reported failure (permissions, target, timeout)."""

    kind = ErrorKind.CHANNEL_FAILURE
    default_code = ErrorCode.UNKNOWN_ERROR


class AmbiguousResponse(SnapshotError):
    """The channel answered with a placeholder instead of the script result."""

    kind = ErrorKind.AMBIGUOUS_RESPONSE
    default_code = ErrorCode.JAVASCRIPT_ERROR


class MalformedPayload(SnapshotError):
    """A payload could not be decoded into a snapshot result."""

    kind = ErrorKind.MALFORMED_PAYLOAD
    default_code = ErrorCode.INVALID_JSON


class EmptyResult(SnapshotError):
    kind = ErrorKind.EMPTY_RESULT
    default_code = ErrorCode.UNKNOWN_ERROR


class NodeProcessingError(SnapshotError):
    """A single element failed during extraction."""

    kind = ErrorKind.NODE_PROCESSING
    default_code = ErrorCode.UNKNOWN_ERROR
