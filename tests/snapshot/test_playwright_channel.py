import asyncio

import pytest

from tabscope.snapshot.channel import ChannelTarget
from tabscope.snapshot.errors import ErrorCode
from tabscope.snapshot.models import SnapshotOptions
from tabscope.snapshot.playwright_channel import PlaywrightChannel
from tabscope.snapshot.snapshot_script import SnapshotScript


class FakePage:
    def __init__(self, name, visibility="hidden", result=None, delay=0.0, error=None):
        self.name = name
        self.visibility = visibility
        self.result = result if result is not None else f'{{"ok": true, "page": "{name}"}}'
        self.delay = delay
        self.error = error
        self.scripts = []

    async def evaluate(self, expression):
        if expression == "() => document.visibilityState":
            return self.visibility
        self.scripts.append(expression)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


class FakeContext:
    def __init__(self, *pages):
        self.pages = list(pages)


class FakeBrowser:
    def __init__(self, *contexts):
        self.contexts = list(contexts)


def _channel(*contexts):
    channel = PlaywrightChannel()
    channel._browser = FakeBrowser(*contexts)
    return channel


def _script():
    return SnapshotScript(SnapshotOptions())


@pytest.mark.asyncio
async def test_window_and_tab_indexes_are_one_based():
    second_window_tab = FakePage("w2t2")
    channel = _channel(
        FakeContext(FakePage("w1t1"), FakePage("w1t2")),
        FakeContext(FakePage("w2t1"), second_window_tab),
    )
    response = await channel.execute(_script(), ChannelTarget(window_index=2, tab_index=2), 1000)
    assert response.success is True
    assert response.payload == '{"ok": true, "page": "w2t2"}'
    assert second_window_tab.scripts == [_script().render()]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "target",
    [
        ChannelTarget(window_index=3, tab_index=1),
        ChannelTarget(window_index=1, tab_index=5),
        ChannelTarget(window_index=0, tab_index=1),
    ],
)
async def test_out_of_range_target_is_tab_not_found(target):
    channel = _channel(FakeContext(FakePage("only")))
    response = await channel.execute(_script(), target, 1000)
    assert response.success is False
    assert response.code == ErrorCode.TAB_NOT_FOUND


@pytest.mark.asyncio
async def test_active_tab_is_first_visible_page():
    visible = FakePage("front", visibility="visible")
    later = FakePage("also-visible", visibility="visible")
    channel = _channel(
        FakeContext(FakePage("background")),
        FakeContext(FakePage("hidden"), visible, later),
    )
    response = await channel.execute(_script(), ChannelTarget.active_tab(), 1000)
    assert response.payload == '{"ok": true, "page": "front"}'
    assert later.scripts == []


@pytest.mark.asyncio
async def test_no_visible_page_is_tab_not_found():
    channel = _channel(FakeContext(FakePage("a"), FakePage("b")))
    response = await channel.execute(_script(), ChannelTarget.active_tab(), 1000)
    assert response.code == ErrorCode.TAB_NOT_FOUND


@pytest.mark.asyncio
async def test_attach_failure_is_chrome_not_found(monkeypatch):
    channel = PlaywrightChannel("http://127.0.0.1:1")

    async def refuse():
        raise ConnectionError("connect ECONNREFUSED 127.0.0.1:1")

    monkeypatch.setattr(channel, "start", refuse)
    response = await channel.execute(_script(), ChannelTarget(), 1000)
    assert response.success is False
    assert response.code == ErrorCode.CHROME_NOT_FOUND
    assert "ECONNREFUSED" in response.error


@pytest.mark.asyncio
async def test_slow_evaluate_is_script_timeout():
    channel = _channel(FakeContext(FakePage("slow", delay=5)))
    response = await channel.execute(_script(), ChannelTarget(), 50)
    assert response.success is False
    assert response.code == ErrorCode.SCRIPT_TIMEOUT


@pytest.mark.asyncio
async def test_evaluate_error_is_javascript_error():
    channel = _channel(FakeContext(FakePage("broken", error=RuntimeError("ReferenceError: x is not defined"))))
    response = await channel.execute(_script(), ChannelTarget(), 1000)
    assert response.success is False
    assert response.code == ErrorCode.JAVASCRIPT_ERROR
    assert "ReferenceError" in response.error
