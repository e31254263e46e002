import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from aicalamba.config import MIN_APIFLASH_DELAY_S
from aicalamba.errors import InvalidImageError, ScreenshotError
from aicalamba.images import verify_jpeg
from screenshot.providers.base import ScreenshotProvider

logger = logging.getLogger(__name__)


@dataclass
class ApiFlashConfig:
    access_key: str
    # Some pages are really slow. We're not in a rush, make sure results are correct.
    delay_s: int = MIN_APIFLASH_DELAY_S
    timeout_s: float = 60.0
    base_url: str = "https://api.apiflash.com/v1/urltoimage"


class ApiFlashProvider(ScreenshotProvider):
    """URL-to-image rendering through apiflash (https://apiflash.com/documentation)."""

    def __init__(self, config: ApiFlashConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self._transport = transport

    async def capture(self, url: str) -> bytes:
        logger.debug(f"Will fetch screenshot for URL: {url}")

        if not self.config.access_key:
            logger.error("apiflash access key not configured")
            raise ScreenshotError()

        params = {
            "access_key": self.config.access_key,
            "url": url,
            "delay": str(max(self.config.delay_s, MIN_APIFLASH_DELAY_S)),
            "format": "jpeg",
        }
        # The rendering delay is spent server side, on top of normal transport time
        timeout = self.config.timeout_s + self.config.delay_s

        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                response = await client.get(self.config.base_url, params=params)
                logger.debug(f"apiflash response: HTTP {response.status_code}")
                response.raise_for_status()
                data = response.content
        except httpx.HTTPStatusError as e:
            logger.error(f"apiflash returned HTTP {e.response.status_code} for {url}")
            raise ScreenshotError() from e
        except httpx.HTTPError as e:
            logger.error(f"apiflash request failed for {url}: {e.__class__.__name__}: {e}")
            raise ScreenshotError() from e

        try:
            await asyncio.to_thread(verify_jpeg, data)
        except InvalidImageError as e:
            logger.error(f"apiflash returned an invalid image for {url}: {e}")
            raise ScreenshotError() from e

        logger.debug(f"Image size: {len(data)} bytes")
        return data
