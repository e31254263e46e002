import asyncio
import logging
from typing import Optional

from aicalamba.errors import InputError
from aicalamba.images import ensure_jpeg
from aicalamba.models import ImagePayload, InputPayload, TextPayload
from api.metrics import ICAL_VALIDATION_TOTAL, SCREENSHOTS_TOTAL
from classification.input_classifier import InputClassifier
from integration.ical_validator import ICalValidator
from llm.llm_client import LLMClient
from screenshot.providers.base import ScreenshotProvider
from storage.image_cache import LastImageCache

logger = logging.getLogger(__name__)


class CalendarBackend:
    """Central orchestration component: input in, iCalendar text out."""

    def __init__(
        self,
        llm_client: LLMClient,
        screenshot_provider: ScreenshotProvider,
        image_cache: LastImageCache,
        classifier: Optional[InputClassifier] = None,
        validator: Optional[ICalValidator] = None,
    ):
        self.llm_client = llm_client
        self.screenshot_provider = screenshot_provider
        self.image_cache = image_cache
        self.classifier = classifier or InputClassifier()
        self.validator = validator or ICalValidator()

    async def submit_text(self, text: str) -> str:
        """Accepts a URL or a free text event description."""
        route = self.classifier.classify(text)
        if not route.value:
            raise InputError("Text must not be empty")

        if route.is_url:
            # 1. Render the page; must finish before extraction starts
            image = await self._capture(route.value)
            payload: InputPayload = ImagePayload(image)
        else:
            payload = TextPayload(route.value)

        # 2. Extract and check
        return await self._extract(payload)

    async def submit_image(self, data: bytes) -> str:
        """Accepts an uploaded picture of an event."""
        # Raises InvalidImageError before anything reaches the model
        jpeg = await asyncio.to_thread(ensure_jpeg, data)
        return await self._extract(ImagePayload(jpeg))

    async def _capture(self, url: str) -> bytes:
        try:
            image = await self.screenshot_provider.capture(url)
        except Exception:
            _count(SCREENSHOTS_TOTAL, outcome="failed")
            raise
        _count(SCREENSHOTS_TOTAL, outcome="ok")

        # Cached right away, whatever the extraction does next
        await self.image_cache.put(image)
        return image

    async def _extract(self, payload: InputPayload) -> str:
        content = await self.llm_client.extract(payload)

        # Sanity check only: log, and send it out anyway
        valid = self.validator.validate(content)
        _count(ICAL_VALIDATION_TOTAL, result="ok" if valid else "invalid")
        return content


def _count(counter, **labels) -> None:
    # Prometheus counters are best-effort
    try:
        counter.labels(**labels).inc()
    except Exception:
        logger.debug("Failed to update metric", exc_info=True)
