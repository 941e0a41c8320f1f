"""Run snapshot scripts in Chrome through `osascript`."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence

from .channel import ChannelResponse, ChannelTarget
from .errors import ErrorCode
from .settings import DEFAULT_BROWSER_APP
from .snapshot_script import SnapshotScript

logger = logging.getLogger(__name__)

ERROR_PREFIX = "ERROR:"

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\r": "\\r",
    "\n": "\\n",
    "\t": "\\t",
}


def escape_applescript_string(text: str) -> str:
    """Make `text` safe inside an AppleScript double-quoted literal."""
    out: List[str] = []
    for char in str(text):
        if char in _ESCAPES:
            out.append(_ESCAPES[char])
        elif ord(char) < 0x20 or ord(char) == 0x7F:
            # AppleScript has no \\x escape; control characters are dropped
            continue
        else:
            out.append(char)
    return "".join(out)


def _tab_reference(target: ChannelTarget) -> str:
    if target.active:
        return "active tab of front window"
    return f"tab {int(target.tab_index)} of window {int(target.window_index)}"


def build_applescript(javascript: str, target: ChannelTarget, app_name: str = DEFAULT_BROWSER_APP) -> str:
    escaped_app = escape_applescript_string(app_name)
    escaped_js = escape_applescript_string(javascript)
    tab_ref = _tab_reference(target)
    return "\n".join(
        [
            f'if application "{escaped_app}" is not running then',
            f'    return "{ERROR_PREFIX} {escaped_app} is not running"',
            "end if",
            f'tell application "{escaped_app}"',
            "    try",
            f"        set targetTab to {tab_ref}",
            "    on error",
            f'        return "{ERROR_PREFIX} Tab not found"',
            "    end try",
            "    try",
            f'        return execute targetTab javascript "{escaped_js}"',
            "    on error errMsg",
            f'        return "{ERROR_PREFIX} " & errMsg',
            "    end try",
            "end tell",
        ]
    )


def classify_error(message: str) -> ErrorCode:
    lowered = message.lower()
    if "not running" in lowered:
        return ErrorCode.CHROME_NOT_FOUND
    if "tab not found" in lowered:
        return ErrorCode.TAB_NOT_FOUND
    if "not authorized" in lowered or "access" in lowered:
        return ErrorCode.PERMISSION_DENIED
    return ErrorCode.APPLESCRIPT_ERROR


class AppleScriptChannel:
    """ExecutionChannel backed by `osascript -e <script>` (macOS only)."""

    def __init__(self, app_name: str = DEFAULT_BROWSER_APP, osascript: str = "osascript"):
        self.app_name = app_name
        self.osascript = osascript

    def command_for(self, script: SnapshotScript, target: ChannelTarget) -> Sequence[str]:
        return [self.osascript, "-e", build_applescript(script.render(), target, self.app_name)]

    async def execute(
        self,
        script: SnapshotScript,
        target: ChannelTarget,
        timeout_ms: int,
    ) -> ChannelResponse:
        cmd = self.command_for(script, target)
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (FileNotFoundError, OSError) as exc:
            return ChannelResponse.failure(str(exc), ErrorCode.APPLESCRIPT_ERROR)

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=max(1, timeout_ms) / 1000.0
            )
        except asyncio.TimeoutError:
            await _terminate(process)
            return ChannelResponse.failure(
                f"osascript timed out after {timeout_ms}ms", ErrorCode.SCRIPT_TIMEOUT
            )
        except asyncio.CancelledError:
            # the caller gave up; osascript must not outlive the attempt
            await _terminate(process)
            raise

        stdout_text = stdout.decode("utf-8", errors="replace").strip()
        stderr_text = stderr.decode("utf-8", errors="replace").strip()

        if process.returncode != 0:
            message = stderr_text or f"osascript failed with exit code {process.returncode}"
            return ChannelResponse.failure(message, classify_error(message))

        if stdout_text.startswith(ERROR_PREFIX):
            message = stdout_text[len(ERROR_PREFIX):].strip()
            return ChannelResponse.failure(message, classify_error(message))

        return ChannelResponse.ok(stdout_text)


async def _terminate(process: Optional[asyncio.subprocess.Process]) -> None:
    if process is None or process.returncode is not None:
        return
    try:
        process.kill()
    except ProcessLookupError:
        return
    try:
        await process.wait()
    except Exception as exc:
        logger.debug("osascript did not exit cleanly after kill: %s", exc)
