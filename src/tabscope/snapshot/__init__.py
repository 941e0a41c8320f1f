"""
Page structure snapshot engine.

This package turns a browser tab into a serializable list (outline) or
pruned hierarchy (dom-lite) of its interactive elements, executes the
snapshot through an unreliable channel with a resilience ladder, and
normalises whatever comes back.
"""

from .channel import ChannelResponse, ChannelTarget, ExecutionChannel, InProcessChannel
from .errors import ErrorCode, ErrorKind, SnapshotError
from .html_document import load_html
from .models import SnapshotErrorEnvelope, SnapshotNode, SnapshotOptions, SnapshotResult
from .resilience import AttemptRecord, SnapshotCoordinator
from .result_format import format_snapshot_result
from .service import SnapshotReport, capture_dom_lite, capture_outline, capture_snapshot
from .settings import SnapshotSettings
from .snapshot_script import SnapshotScript

__all__ = [
    "AttemptRecord",
    "ChannelResponse",
    "ChannelTarget",
    "ErrorCode",
    "ErrorKind",
    "ExecutionChannel",
    "InProcessChannel",
    "SnapshotCoordinator",
    "SnapshotError",
    "SnapshotErrorEnvelope",
    "SnapshotNode",
    "SnapshotOptions",
    "SnapshotReport",
    "SnapshotResult",
    "SnapshotScript",
    "SnapshotSettings",
    "capture_dom_lite",
    "capture_outline",
    "capture_snapshot",
    "format_snapshot_result",
    "load_html",
]
