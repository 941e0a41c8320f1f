"""
Snapshot service facade.

Wires options, settings, a channel and the resilience ladder together and
returns the formatted result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Union

from .applescript_channel import AppleScriptChannel
from .channel import ChannelTarget, ExecutionChannel, InProcessChannel
from .dom import Document
from .models import SnapshotErrorEnvelope, SnapshotOptions, SnapshotResult
from .playwright_channel import PlaywrightChannel
from .resilience import AttemptRecord, SnapshotCoordinator
from .result_format import format_snapshot_result
from .settings import CHANNEL_PLAYWRIGHT, DEFAULT_MAX_DEPTH, SnapshotSettings
from .snapshot_script import SnapshotScript

logger = logging.getLogger(__name__)

SnapshotOutput = Union[SnapshotResult, SnapshotErrorEnvelope]


@dataclass
class SnapshotReport:
    output: SnapshotOutput
    attempts: List[AttemptRecord] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return isinstance(self.output, SnapshotResult) and self.output.ok


def build_channel(
    settings: SnapshotSettings,
    *,
    document: Optional[Document] = None,
) -> ExecutionChannel:
    if document is not None:
        return InProcessChannel(document)
    if settings.channel == CHANNEL_PLAYWRIGHT:
        return PlaywrightChannel(settings.cdp_endpoint)
    return AppleScriptChannel(settings.browser_app)


async def capture_snapshot(
    options: SnapshotOptions,
    channel: ExecutionChannel,
    *,
    settings: Optional[SnapshotSettings] = None,
    strategy: Optional[str] = None,
    simple: bool = False,
    timeout_ms: Optional[int] = None,
    target: Optional[ChannelTarget] = None,
) -> SnapshotReport:
    settings = settings or SnapshotSettings.from_env()
    coordinator = SnapshotCoordinator(
        channel,
        strategy=strategy or settings.strategy,
        primary_target=target
        or ChannelTarget(window_index=settings.window_index, tab_index=settings.tab_index),
    )
    ladder = await coordinator.run(
        SnapshotScript(options),
        timeout_ms or settings.timeout_for(options.mode),
        simple=simple,
    )
    return SnapshotReport(output=format_snapshot_result(ladder.response), attempts=ladder.attempts)


async def capture_outline(
    channel: ExecutionChannel,
    *,
    visible_only: bool = False,
    **kwargs,
) -> SnapshotReport:
    options = SnapshotOptions(mode="outline", visible_only=visible_only)
    return await capture_snapshot(options, channel, **kwargs)


async def capture_dom_lite(
    channel: ExecutionChannel,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    visible_only: bool = False,
    **kwargs,
) -> SnapshotReport:
    options = SnapshotOptions(mode="dom-lite", visible_only=visible_only, max_depth=max_depth)
    return await capture_snapshot(options, channel, **kwargs)
