"""
Screenshots through a remote headless browser.

Connects to a Chrome DevTools Protocol endpoint (browserless, a chrome started
with --remote-debugging-port, ...) with Playwright, renders the page and takes
a full page JPEG. The browser connection lives inside `async with` and a
`finally`, so it is torn down on success, on error and when the request task
is cancelled.
"""

import asyncio
import logging
from dataclasses import dataclass

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from aicalamba.errors import InvalidImageError, ScreenshotError
from aicalamba.images import verify_jpeg
from screenshot.providers.base import ScreenshotProvider

logger = logging.getLogger(__name__)


@dataclass
class BrowserConfig:
    endpoint: str
    # Empirically enough for async page content to finish loading
    settle_s: float = 3.0
    navigation_timeout_s: float = 60.0
    viewport_width: int = 1280
    viewport_height: int = 800


class BrowserProvider(ScreenshotProvider):

    def __init__(self, config: BrowserConfig):
        self.config = config

    async def capture(self, url: str) -> bytes:
        logger.debug(f"Will capture {url} via browser at {self.config.endpoint}")

        if not self.config.endpoint:
            logger.error("Browser endpoint not configured")
            raise ScreenshotError()

        try:
            data = await self._capture(url)
        except PlaywrightError as e:
            logger.error(f"Browser screenshot failed for {url}: {e}")
            raise ScreenshotError() from e

        try:
            await asyncio.to_thread(verify_jpeg, data)
        except InvalidImageError as e:
            logger.error(f"Browser returned an invalid image for {url}: {e}")
            raise ScreenshotError() from e

        logger.debug(f"Image size: {len(data)} bytes")
        return data

    async def _capture(self, url: str) -> bytes:
        timeout_ms = self.config.navigation_timeout_s * 1000

        async with async_playwright() as pw:
            browser = await pw.chromium.connect_over_cdp(self.config.endpoint, timeout=timeout_ms)
            try:
                context = await browser.new_context(
                    viewport={
                        "width": self.config.viewport_width,
                        "height": self.config.viewport_height,
                    }
                )
                page = await context.new_page()
                await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
                await page.wait_for_selector("body", state="visible", timeout=timeout_ms)
                await asyncio.sleep(self.config.settle_s)
                return await page.screenshot(full_page=True, type="jpeg")
            finally:
                await browser.close()
                logger.debug("Browser session closed")
