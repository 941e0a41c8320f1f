import logging

from tabscope.snapshot.errors import (
    AmbiguousResponse,
    ChannelFailure,
    EmptyResult,
    ErrorCode,
    ErrorKind,
    MalformedPayload,
)
from tabscope.snapshot.logging_utils import _log_snapshot_event, _render_log_kv


def test_default_codes_per_kind():
    assert AmbiguousResponse("x").code == ErrorCode.JAVASCRIPT_ERROR
    assert MalformedPayload("x").code == ErrorCode.INVALID_JSON
    assert EmptyResult("x").code == ErrorCode.UNKNOWN_ERROR
    assert ChannelFailure("x", code=ErrorCode.SCRIPT_TIMEOUT).code == ErrorCode.SCRIPT_TIMEOUT


def test_envelope_and_dict():
    error = ChannelFailure("Tab not found", code=ErrorCode.TAB_NOT_FOUND, context={"tab": 3})
    envelope = error.to_envelope()
    assert envelope["success"] is False
    assert envelope["code"] == 53
    assert envelope["kind"] == ErrorKind.CHANNEL_FAILURE.value
    assert envelope["timestamp"].endswith("Z")
    details = error.to_dict()
    assert details["error_type"] == "ChannelFailure"
    assert details["tab"] == 3


def test_render_log_kv_drops_none_and_formats_values():
    rendered = _render_log_kv({"event": "attempt", "ok": True, "ms": 12.345, "skip": None, "n": 3})
    assert rendered == "event=attempt ok=true ms=12.3 n=3"


def test_log_snapshot_event(caplog):
    logger = logging.getLogger("tabscope.test")
    caplog.set_level(logging.INFO, logger="tabscope.test")
    _log_snapshot_event(logger, level=logging.INFO, event="ladder_done", attempts=2)
    _log_snapshot_event(logger, level=logging.DEBUG, event="hidden")
    assert "snapshot event=ladder_done attempts=2" in caplog.text
    assert "hidden" not in caplog.text
