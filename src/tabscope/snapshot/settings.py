from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

STRATEGY_ROBUST = "robust"
STRATEGY_LEGACY = "legacy"
SNAPSHOT_STRATEGIES = (STRATEGY_ROBUST, STRATEGY_LEGACY)

CHANNEL_APPLESCRIPT = "applescript"
CHANNEL_PLAYWRIGHT = "playwright"
SNAPSHOT_CHANNELS = (CHANNEL_APPLESCRIPT, CHANNEL_PLAYWRIGHT)

DEFAULT_OUTLINE_TIMEOUT_MS = 15_000
DEFAULT_DOM_LITE_TIMEOUT_MS = 20_000
DEFAULT_MAX_DEPTH = 10
DEFAULT_BROWSER_APP = "Google Chrome"
DEFAULT_CDP_ENDPOINT = "http://127.0.0.1:9222"


def _parse_int_env(name: str, default: int, minimum: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return max(minimum, int(default))
    try:
        parsed = int(raw.strip())
    except ValueError:
        return max(minimum, int(default))
    return max(minimum, parsed)


def _parse_choice_env(name: str, choices: tuple[str, ...], default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    text = raw.strip().lower()
    if text in choices:
        return text
    return default


def _parse_str_env(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    text = raw.strip()
    return text or default


def _default_log_dir() -> Path:
    return Path.home() / ".tabscope" / "logs"


@dataclass(frozen=True)
class SnapshotSettings:
    strategy: str = STRATEGY_ROBUST
    outline_timeout_ms: int = DEFAULT_OUTLINE_TIMEOUT_MS
    dom_lite_timeout_ms: int = DEFAULT_DOM_LITE_TIMEOUT_MS
    browser_app: str = DEFAULT_BROWSER_APP
    window_index: int = 1
    tab_index: int = 1
    channel: str = CHANNEL_APPLESCRIPT
    cdp_endpoint: str = DEFAULT_CDP_ENDPOINT
    log_dir: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "SnapshotSettings":
        raw_log_dir = os.getenv("TABSCOPE_LOG_DIR", "").strip()
        return cls(
            strategy=_parse_choice_env(
                "TABSCOPE_SNAPSHOT_STRATEGY", SNAPSHOT_STRATEGIES, STRATEGY_ROBUST
            ),
            outline_timeout_ms=_parse_int_env(
                "TABSCOPE_OUTLINE_TIMEOUT_MS", DEFAULT_OUTLINE_TIMEOUT_MS, 1
            ),
            dom_lite_timeout_ms=_parse_int_env(
                "TABSCOPE_DOM_LITE_TIMEOUT_MS", DEFAULT_DOM_LITE_TIMEOUT_MS, 1
            ),
            browser_app=_parse_str_env("TABSCOPE_BROWSER_APP", DEFAULT_BROWSER_APP),
            window_index=_parse_int_env("TABSCOPE_WINDOW_INDEX", 1, 1),
            tab_index=_parse_int_env("TABSCOPE_TAB_INDEX", 1, 1),
            channel=_parse_choice_env("TABSCOPE_CHANNEL", SNAPSHOT_CHANNELS, CHANNEL_APPLESCRIPT),
            cdp_endpoint=_parse_str_env("TABSCOPE_CDP_ENDPOINT", DEFAULT_CDP_ENDPOINT),
            log_dir=Path(raw_log_dir).expanduser() if raw_log_dir else None,
        )

    def timeout_for(self, mode: str) -> int:
        if mode == "dom-lite":
            return self.dom_lite_timeout_ms
        return self.outline_timeout_ms

    def resolved_log_dir(self) -> Path:
        return self.log_dir or _default_log_dir()
