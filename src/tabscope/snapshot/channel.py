"""
Execution channel contract.

A channel takes a `SnapshotScript`, runs it against one browser tab and
returns a `ChannelResponse`. Channels never raise for runtime failures;
they report them as `success=False` with an `ErrorCode`.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from .dom import Document
from .errors import ErrorCode
from .snapshot_script import SnapshotScript

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChannelTarget:
    """Primary addressing is window/tab (1-based); `active` means the front tab."""

    window_index: int = 1
    tab_index: int = 1
    active: bool = False

    @classmethod
    def active_tab(cls) -> "ChannelTarget":
        return cls(active=True)

    def describe(self) -> str:
        if self.active:
            return "active"
        return f"window={self.window_index},tab={self.tab_index}"


@dataclass
class ChannelResponse:
    success: bool
    payload: Any = None
    error: Optional[str] = None
    code: ErrorCode = ErrorCode.OK

    @classmethod
    def ok(cls, payload: Any) -> "ChannelResponse":
        return cls(success=True, payload=payload)

    @classmethod
    def failure(cls, error: str, code: ErrorCode = ErrorCode.UNKNOWN_ERROR) -> "ChannelResponse":
        return cls(success=False, error=error, code=code)


class ExecutionChannel(Protocol):
    async def execute(
        self,
        script: SnapshotScript,
        target: ChannelTarget,
        timeout_ms: int,
    ) -> ChannelResponse: ...


class InProcessChannel:
    """Runs snapshot scripts against an in-memory `Document`."""

    def __init__(self, document: Document):
        self.document = document

    async def execute(
        self,
        script: SnapshotScript,
        target: ChannelTarget,
        timeout_ms: int,
    ) -> ChannelResponse:
        _ = target, timeout_ms
        try:
            payload = await asyncio.to_thread(script.run, self.document)
        except Exception as exc:
            logger.warning("In-process snapshot failed: %s", exc)
            return ChannelResponse.failure(str(exc), ErrorCode.JAVASCRIPT_ERROR)
        return ChannelResponse.ok(payload)
