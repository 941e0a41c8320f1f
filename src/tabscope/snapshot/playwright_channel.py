"""Run snapshot scripts in a running Chrome attached over CDP."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional

from .channel import ChannelResponse, ChannelTarget
from .errors import ErrorCode
from .settings import DEFAULT_CDP_ENDPOINT
from .snapshot_script import SnapshotScript

logger = logging.getLogger(__name__)

_VISIBILITY_JS = "() => document.visibilityState"


class PlaywrightChannel:
    """
    ExecutionChannel backed by Playwright's `connect_over_cdp`.

    Window indexes map to browser contexts and tab indexes to pages, both
    1-based. The active tab is the first page reporting
    `document.visibilityState == "visible"`.
    """

    def __init__(self, endpoint: str = DEFAULT_CDP_ENDPOINT):
        self.endpoint = endpoint
        self._playwright: Any = None
        self._browser: Any = None

    async def start(self) -> None:
        if self._browser is not None:
            return
        try:
            from playwright.async_api import async_playwright
        except ImportError as exc:
            raise RuntimeError("playwright is not installed. Install it with: pip install playwright") from exc

        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.connect_over_cdp(self.endpoint)
        except Exception:
            await self.stop()
            raise
        logger.info("Attached to browser over CDP endpoint=%s", self.endpoint)

    async def stop(self) -> None:
        browser = self._browser
        playwright = self._playwright
        self._browser = None
        self._playwright = None
        try:
            if browser is not None:
                await browser.close()
        finally:
            if playwright is not None:
                await playwright.stop()

    async def __aenter__(self) -> "PlaywrightChannel":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    async def _resolve_page(self, target: ChannelTarget) -> Optional[Any]:
        contexts: List[Any] = list(self._browser.contexts)
        if target.active:
            for context in contexts:
                for page in context.pages:
                    try:
                        if await page.evaluate(_VISIBILITY_JS) == "visible":
                            return page
                    except Exception as exc:
                        logger.debug("Skipping page while resolving active tab: %s", exc)
            return None

        window = int(target.window_index) - 1
        tab = int(target.tab_index) - 1
        if not 0 <= window < len(contexts):
            return None
        pages = list(contexts[window].pages)
        if not 0 <= tab < len(pages):
            return None
        return pages[tab]

    async def execute(
        self,
        script: SnapshotScript,
        target: ChannelTarget,
        timeout_ms: int,
    ) -> ChannelResponse:
        try:
            await self.start()
        except Exception as exc:
            return ChannelResponse.failure(f"Cannot attach to browser: {exc}", ErrorCode.CHROME_NOT_FOUND)

        page = await self._resolve_page(target)
        if page is None:
            return ChannelResponse.failure(f"Tab not found ({target.describe()})", ErrorCode.TAB_NOT_FOUND)

        try:
            payload = await asyncio.wait_for(
                page.evaluate(script.render()), timeout=max(1, timeout_ms) / 1000.0
            )
        except asyncio.TimeoutError:
            return ChannelResponse.failure(f"Script timed out after {timeout_ms}ms", ErrorCode.SCRIPT_TIMEOUT)
        except Exception as exc:
            return ChannelResponse.failure(str(exc), ErrorCode.JAVASCRIPT_ERROR)
        return ChannelResponse.ok(payload)
