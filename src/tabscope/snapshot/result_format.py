"""Normalise raw channel output into a `SnapshotResult` or an error envelope."""

from __future__ import annotations

import json
import logging
from typing import Any, Union

from pydantic import ValidationError

from .channel import ChannelResponse
from .errors import (
    AmbiguousResponse,
    ChannelFailure,
    EmptyResult,
    ErrorCode,
    MalformedPayload,
    SnapshotError,
)
from .logging_utils import _log_snapshot_event
from .models import SnapshotErrorEnvelope, SnapshotResult

logger = logging.getLogger(__name__)

AMBIGUOUS_MARKER = "missing value"
AMBIGUOUS_MAX_LENGTH = 64


def is_ambiguous_payload(payload: Any) -> bool:
    """True for the short placeholder a channel returns when the script never ran."""
    if not isinstance(payload, str):
        return False
    trimmed = payload.strip().lower()
    return len(trimmed) < AMBIGUOUS_MAX_LENGTH and AMBIGUOUS_MARKER in trimmed


def _envelope(error: SnapshotError) -> SnapshotErrorEnvelope:
    _log_snapshot_event(
        logger,
        level=logging.WARNING,
        event="result_error",
        kind=error.kind.value,
        code=int(error.code),
        error=error.message,
    )
    return SnapshotErrorEnvelope.model_validate(error.to_envelope())


def _decode(payload: Any) -> Any:
    if isinstance(payload, (bytes, bytearray)):
        payload = payload.decode("utf-8", errors="replace")
    if isinstance(payload, str):
        if not payload.strip():
            return None
        try:
            return json.loads(payload)
        except json.JSONDecodeError as exc:
            raise MalformedPayload(
                f"Snapshot payload is not valid JSON: {exc.msg}",
                context={"preview": payload[:120]},
            ) from exc
    return payload


def format_snapshot_result(response: ChannelResponse) -> Union[SnapshotResult, SnapshotErrorEnvelope]:
    if not response.success:
        code = response.code if response.code != ErrorCode.OK else ErrorCode.UNKNOWN_ERROR
        return _envelope(ChannelFailure(response.error or "Execution channel failed", code=code))

    payload = response.payload
    if is_ambiguous_payload(payload):
        return _envelope(
            AmbiguousResponse(
                "Browser returned a placeholder instead of the snapshot result"
                " (the script probably did not run in the target tab)"
            )
        )

    try:
        data = _decode(payload)
    except MalformedPayload as exc:
        return _envelope(exc)

    if data is None or data == "" or data == {} or data == []:
        return _envelope(EmptyResult("Snapshot returned no data"))

    if not isinstance(data, dict):
        return _envelope(MalformedPayload(f"Unexpected snapshot payload type: {type(data).__name__}"))

    try:
        return SnapshotResult.model_validate(data)
    except ValidationError as exc:
        return _envelope(MalformedPayload(f"Snapshot payload failed validation: {exc.error_count()} error(s)"))
