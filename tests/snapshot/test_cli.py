import json

import pytest
from click.testing import CliRunner

from tabscope.command import tabscope_snapshot
from tabscope.snapshot.channel import ChannelResponse
from tabscope.snapshot.errors import ErrorCode

PAGE = """<!DOCTYPE html>
<html><head><title>Saved</title></head>
<body>
  <nav><a id="home" href="/" style="width:60px;height:20px">Home</a></nav>
  <main>
    <button id="btn1" style="width:100px;height:20px;top:40px">Click</button>
    <input id="pw" type="password" value="secret">
  </main>
</body></html>
"""


@pytest.fixture
def page_file(tmp_path, monkeypatch):
    monkeypatch.setenv("TABSCOPE_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("TABSCOPE_SNAPSHOT_STRATEGY", raising=False)
    path = tmp_path / "page.html"
    path.write_text(PAGE, encoding="utf-8")
    return str(path)


def _invoke(*args):
    return CliRunner().invoke(tabscope_snapshot.run, list(args))


def test_outline_json(page_file):
    result = _invoke("snapshot", "outline", "--html", page_file, "--json")
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["ok"] is True
    assert [node["selector"] for node in data["nodes"]] == ["#home", "#btn1", "#pw"]
    assert data["nodes"][2]["state"]["value"] == "***"
    assert data["meta"]["url"].startswith("file://")


def test_outline_text(page_file):
    result = _invoke("snapshot", "outline", "--html", page_file, "--visible-only")
    assert result.exit_code == 0, result.output
    assert "[link] Home  #home  @0,0 60x20" in result.output
    assert "[button] Click  #btn1  @0,40 100x20" in result.output
    assert "#pw" not in result.output


def test_dom_lite_levels(page_file):
    result = _invoke("snapshot", "dom-lite", "--html", page_file, "--json", "--max-depth", "1")
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert [(node["tagName"], node["level"]) for node in data["nodes"]] == [
        ("body", 0),
        ("nav", 1),
        ("main", 1),
    ]
    assert data["meta"]["maxDepth"] == 1


def test_dom_lite_simple_mode(page_file):
    result = _invoke("snapshot", "dom-lite", "--html", page_file, "--json", "--mode", "simple")
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["nodes"]
    assert all("role" not in node for node in data["nodes"])


def test_negative_depth_is_rejected(page_file):
    result = _invoke("snapshot", "dom-lite", "--html", page_file, "--max-depth", "-1")
    assert result.exit_code == 2


class FailingChannel:
    async def execute(self, script, target, timeout_ms):
        return ChannelResponse.failure("Google Chrome is not running", ErrorCode.CHROME_NOT_FOUND)


def test_channel_failure_sets_exit_code(page_file, monkeypatch):
    monkeypatch.setattr(tabscope_snapshot, "build_channel", lambda settings, document=None: FailingChannel())
    result = _invoke("snapshot", "outline", "--json")
    assert result.exit_code == int(ErrorCode.CHROME_NOT_FOUND)
    data = json.loads(result.output)
    assert data["success"] is False
    assert data["kind"] == "channel_failure"
    assert data["code"] == 50
