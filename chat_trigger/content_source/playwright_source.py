"""Chat content source backed by a headless Chromium page via Playwright."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import structlog
from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from ..config import ChatTriggerConfig, get_config
from ..errors import ChatNotReady, LaunchError, SampleError
from .base import ChatMessage, ContentSource

logger = structlog.get_logger(__name__)

_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

# Runs in the page: one {username, text} object per chat entry.
_EXTRACT_JS = """
(elements, [userSel, textSel]) => elements.map(el => {
    const user = el.querySelector(userSel);
    const text = el.querySelector(textSel);
    return {
        username: user ? (user.textContent || '') : '',
        text: text ? (text.textContent || '') : '',
    };
})
"""


def find_chromium_executable(configured: str | None = None) -> str | None:
    """Return ``configured`` when it exists, else the first well-known install."""
    if configured:
        if Path(configured).exists():
            return configured
        logger.warning("Configured chromium_path not found", path=configured)

    candidates = [
        "/usr/bin/chromium",
        "/usr/bin/chromium-browser",
        "/usr/bin/google-chrome",
        "/usr/bin/google-chrome-stable",
        "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
    ]
    for path in candidates:
        if Path(path).exists():
            return path
    return None


@dataclass
class ChatPage:
    """Handle for one open stream page."""
    url: str
    playwright: Playwright
    browser: Browser
    context: BrowserContext
    page: Page


class PlaywrightChatSource(ContentSource):
    """Renders the stream URL and reads chat entries from the DOM."""

    def __init__(self, config: Optional[ChatTriggerConfig] = None):
        self.config = config or get_config()

    async def open(self, url: str) -> ChatPage:
        """Launch a browser and navigate to the stream."""
        logger.info("Launching browser", url=url, headless=self.config.browser_headless)

        playwright: Playwright | None = None
        browser: Browser | None = None
        try:
            playwright = await async_playwright().start()
            launch_kwargs: dict[str, Any] = {
                "headless": self.config.browser_headless,
                "args": list(self.config.browser_args),
            }
            executable = find_chromium_executable(self.config.chromium_path)
            if executable:
                launch_kwargs["executable_path"] = executable
            browser = await playwright.chromium.launch(**launch_kwargs)
            context = await browser.new_context(
                viewport={"width": 1920, "height": 1080},
                user_agent=_USER_AGENT
            )
            page = await context.new_page()
            await page.goto(
                url,
                wait_until="networkidle",
                timeout=self.config.navigation_timeout_seconds * 1000
            )
        except Exception as e:
            logger.error("Browser launch failed", url=url, error=str(e))
            await self._discard(browser, playwright)
            raise LaunchError(str(e) or type(e).__name__) from e

        return ChatPage(url=url, playwright=playwright, browser=browser, context=context, page=page)

    @staticmethod
    async def _discard(browser: Browser | None, playwright: Playwright | None) -> None:
        """Release whatever a failed launch left behind."""
        try:
            if browser is not None:
                await browser.close()
        except PlaywrightError as e:
            logger.warning("Browser close failed", error=str(e))
        finally:
            if playwright is not None:
                await playwright.stop()

    async def sample(self, handle: ChatPage) -> list[ChatMessage]:
        """Read every visible chat entry in DOM order."""
        selectors = self.config.selectors
        try:
            first = await handle.page.query_selector(selectors.message)
            if first is None:
                raise ChatNotReady("chat container not rendered")
            rows = await handle.page.eval_on_selector_all(
                selectors.message,
                _EXTRACT_JS,
                [selectors.username, selectors.text],
            )
        except PlaywrightError as e:
            raise SampleError(str(e)) from e

        return [ChatMessage(username=row.get("username") or "", text=row.get("text") or "") for row in rows]

    async def close(self, handle: ChatPage) -> None:
        """Cleanup browser resources."""
        logger.info("Closing browser", url=handle.url)

        try:
            await handle.context.close()
            await handle.browser.close()
        except PlaywrightError as e:
            logger.warning("Browser close failed", url=handle.url, error=str(e))
        finally:
            await handle.playwright.stop()
