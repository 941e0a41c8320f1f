from pathlib import Path

import pytest

from tabscope.snapshot.settings import (
    CHANNEL_APPLESCRIPT,
    CHANNEL_PLAYWRIGHT,
    DEFAULT_CDP_ENDPOINT,
    STRATEGY_LEGACY,
    STRATEGY_ROBUST,
    SnapshotSettings,
)

ENV_KEYS = (
    "TABSCOPE_SNAPSHOT_STRATEGY",
    "TABSCOPE_OUTLINE_TIMEOUT_MS",
    "TABSCOPE_DOM_LITE_TIMEOUT_MS",
    "TABSCOPE_BROWSER_APP",
    "TABSCOPE_WINDOW_INDEX",
    "TABSCOPE_TAB_INDEX",
    "TABSCOPE_CHANNEL",
    "TABSCOPE_CDP_ENDPOINT",
    "TABSCOPE_LOG_DIR",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults():
    settings = SnapshotSettings.from_env()
    assert settings.strategy == STRATEGY_ROBUST
    assert settings.outline_timeout_ms == 15000
    assert settings.dom_lite_timeout_ms == 20000
    assert settings.browser_app == "Google Chrome"
    assert (settings.window_index, settings.tab_index) == (1, 1)
    assert settings.channel == CHANNEL_APPLESCRIPT
    assert settings.cdp_endpoint == DEFAULT_CDP_ENDPOINT
    assert settings.resolved_log_dir() == Path.home() / ".tabscope" / "logs"


def test_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("TABSCOPE_SNAPSHOT_STRATEGY", " Legacy ")
    monkeypatch.setenv("TABSCOPE_OUTLINE_TIMEOUT_MS", "5000")
    monkeypatch.setenv("TABSCOPE_DOM_LITE_TIMEOUT_MS", "7000")
    monkeypatch.setenv("TABSCOPE_BROWSER_APP", "Chromium")
    monkeypatch.setenv("TABSCOPE_WINDOW_INDEX", "2")
    monkeypatch.setenv("TABSCOPE_TAB_INDEX", "4")
    monkeypatch.setenv("TABSCOPE_CHANNEL", "playwright")
    monkeypatch.setenv("TABSCOPE_LOG_DIR", str(tmp_path))
    settings = SnapshotSettings.from_env()
    assert settings.strategy == STRATEGY_LEGACY
    assert settings.timeout_for("outline") == 5000
    assert settings.timeout_for("dom-lite") == 7000
    assert settings.browser_app == "Chromium"
    assert (settings.window_index, settings.tab_index) == (2, 4)
    assert settings.channel == CHANNEL_PLAYWRIGHT
    assert settings.resolved_log_dir() == tmp_path


def test_invalid_values_fall_back(monkeypatch):
    monkeypatch.setenv("TABSCOPE_SNAPSHOT_STRATEGY", "eager")
    monkeypatch.setenv("TABSCOPE_OUTLINE_TIMEOUT_MS", "soon")
    monkeypatch.setenv("TABSCOPE_WINDOW_INDEX", "0")
    monkeypatch.setenv("TABSCOPE_CHANNEL", "carrier-pigeon")
    monkeypatch.setenv("TABSCOPE_BROWSER_APP", "   ")
    settings = SnapshotSettings.from_env()
    assert settings.strategy == STRATEGY_ROBUST
    assert settings.outline_timeout_ms == 15000
    assert settings.window_index == 1
    assert settings.channel == CHANNEL_APPLESCRIPT
    assert settings.browser_app == "Google Chrome"
