"""
Execution resilience ladder.

Strategies:
- legacy: one attempt on the primary target with the full script.
- robust: primary/full, then active-tab/full, then active-tab/reduced.
  Ambiguous placeholders, failures and timeouts escalate to the next tier.
- simple (override): one attempt on the active tab with the reduced script.

Attempts are strictly sequential. Each one is bounded by the caller
timeout plus a short grace period, so a channel can clean up after its own
timeout before the next tier starts.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .channel import ChannelResponse, ChannelTarget, ExecutionChannel
from .errors import ErrorCode
from .logging_utils import _log_snapshot_event
from .result_format import is_ambiguous_payload
from .settings import SNAPSHOT_STRATEGIES, STRATEGY_LEGACY, STRATEGY_ROBUST
from .snapshot_script import SnapshotScript

logger = logging.getLogger(__name__)

TIER_PRIMARY = "primary"
TIER_ALTERNATE = "alternate"
TIER_REDUCED = "reduced"
TIER_SIMPLE = "simple"

OUTCOME_SUCCESS = "success"
OUTCOME_AMBIGUOUS = "ambiguous"
OUTCOME_FAILURE = "failure"
OUTCOME_TIMEOUT = "timeout"

# added to timeout_ms for the outer bound; channels enforce timeout_ms themselves
ATTEMPT_GRACE_MS = 500


@dataclass
class AttemptRecord:
    tier: str
    target: str
    reduced: bool
    outcome: str
    duration_ms: float
    code: int = int(ErrorCode.OK)
    error: Optional[str] = None


@dataclass
class LadderResult:
    response: ChannelResponse
    attempts: List[AttemptRecord] = field(default_factory=list)

    @property
    def final_tier(self) -> Optional[str]:
        return self.attempts[-1].tier if self.attempts else None


class SnapshotCoordinator:
    def __init__(
        self,
        channel: ExecutionChannel,
        *,
        strategy: str = STRATEGY_ROBUST,
        primary_target: Optional[ChannelTarget] = None,
    ):
        if strategy not in SNAPSHOT_STRATEGIES:
            raise ValueError(f"Unknown snapshot strategy: {strategy}")
        self.channel = channel
        self.strategy = strategy
        self.primary_target = primary_target or ChannelTarget()

    def plan(
        self, script: SnapshotScript, *, simple: bool = False
    ) -> List[Tuple[str, ChannelTarget, SnapshotScript]]:
        alternate = ChannelTarget.active_tab()
        if simple:
            return [(TIER_SIMPLE, alternate, script.simplified())]
        if self.strategy == STRATEGY_LEGACY:
            return [(TIER_PRIMARY, self.primary_target, script)]
        return [
            (TIER_PRIMARY, self.primary_target, script),
            (TIER_ALTERNATE, alternate, script),
            (TIER_REDUCED, alternate, script.simplified()),
        ]

    async def run(
        self,
        script: SnapshotScript,
        timeout_ms: int,
        *,
        simple: bool = False,
    ) -> LadderResult:
        result = LadderResult(response=ChannelResponse.failure("No attempt was made"))
        for tier, target, tier_script in self.plan(script, simple=simple):
            response, record = await self._attempt(tier, target, tier_script, timeout_ms)
            result.response = response
            result.attempts.append(record)
            if record.outcome == OUTCOME_SUCCESS:
                break

        attempts = result.attempts
        _log_snapshot_event(
            logger,
            level=logging.INFO,
            event="ladder_done",
            cmd=script.cmd,
            strategy=TIER_SIMPLE if simple else self.strategy,
            attempts=len(attempts),
            final_tier=result.final_tier,
            outcome=attempts[-1].outcome,
        )
        return result

    async def _attempt(
        self,
        tier: str,
        target: ChannelTarget,
        script: SnapshotScript,
        timeout_ms: int,
    ) -> Tuple[ChannelResponse, AttemptRecord]:
        started = time.perf_counter()
        try:
            response = await asyncio.wait_for(
                self.channel.execute(script, target, timeout_ms),
                timeout=(max(1, timeout_ms) + ATTEMPT_GRACE_MS) / 1000.0,
            )
        except asyncio.TimeoutError:
            response = ChannelResponse.failure(
                f"Snapshot attempt timed out after {timeout_ms}ms", ErrorCode.SCRIPT_TIMEOUT
            )
        except Exception as exc:
            logger.warning("Execution channel raised during %s attempt: %s", tier, exc)
            response = ChannelResponse.failure(str(exc) or type(exc).__name__, ErrorCode.UNKNOWN_ERROR)

        if response.success:
            outcome = OUTCOME_AMBIGUOUS if is_ambiguous_payload(response.payload) else OUTCOME_SUCCESS
        elif response.code == ErrorCode.SCRIPT_TIMEOUT:
            outcome = OUTCOME_TIMEOUT
        else:
            outcome = OUTCOME_FAILURE

        record = AttemptRecord(
            tier=tier,
            target=target.describe(),
            reduced=script.reduced,
            outcome=outcome,
            duration_ms=(time.perf_counter() - started) * 1000.0,
            code=int(response.code),
            error=response.error,
        )
        _log_snapshot_event(
            logger,
            level=logging.DEBUG if outcome == OUTCOME_SUCCESS else logging.WARNING,
            event="attempt",
            tier=tier,
            target=record.target,
            reduced=record.reduced,
            outcome=outcome,
            duration_ms=record.duration_ms,
            code=record.code if outcome != OUTCOME_SUCCESS else None,
            error=record.error,
        )
        return response, record
