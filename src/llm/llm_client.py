import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from aicalamba.config import Settings
from aicalamba.errors import ConfigurationError, NoResponseContentError
from aicalamba.models import ImagePayload, InputPayload, Modality, TextPayload
from extraction.prompt_builder import build_prompt
from llm.providers.base import LLMProvider
from llm.schemas import ExtractionRequest, ImageUrlPart, TextPart

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def build_request(payload: InputPayload, now: datetime, model: Optional[str] = None) -> ExtractionRequest:
    if isinstance(payload, TextPayload):
        prompt = build_prompt(Modality.TEXT, now, payload.text)
        return ExtractionRequest(model=model, content=prompt)
    if isinstance(payload, ImagePayload):
        prompt = build_prompt(Modality.IMAGE, now)
        return ExtractionRequest(
            model=model,
            content=[TextPart(text=prompt), ImageUrlPart.from_jpeg(payload.data)],
        )
    raise TypeError(f"Unsupported payload: {type(payload).__name__}")


class LLMClient:
    """Single stateless round trip to the language model: prompt in, iCal text out."""

    def __init__(
        self,
        provider: LLMProvider,
        model: Optional[str] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.provider = provider
        self.model = model
        self._clock = clock

    async def extract(self, payload: InputPayload, now: Optional[datetime] = None) -> str:
        logger.debug(f"Will fetch LLM output for input: {payload!r}")

        # Read the clock per call so the date in the prompt is never stale
        request = build_request(payload, now or self._clock(), self.model)
        content = await self.provider.generate(request)

        if content is None or not content.strip():
            raise NoResponseContentError()

        logger.debug(f"LLM output: {content!r}")
        return content


def build_provider(settings: Settings) -> LLMProvider:
    # Imported lazily so unused providers don't need their config
    if settings.llm_provider == "openai":
        from llm.providers.openai_provider import OpenAIProvider

        return OpenAIProvider(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url,
            timeout_s=settings.llm_timeout_s,
        )
    if settings.llm_provider == "ollama":
        from llm.providers.ollama_provider import OllamaProvider

        return OllamaProvider(
            model=settings.ollama_model,
            base_url=settings.ollama_base_url,
            timeout_s=settings.llm_timeout_s,
        )
    if settings.llm_provider == "mock":
        from llm.providers.mock_provider import MockProvider

        return MockProvider()
    raise ConfigurationError(f"Unknown LLM_PROVIDER: {settings.llm_provider!r}")
