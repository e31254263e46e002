from __future__ import annotations
import logging
from typing import Optional
import httpx
from aicalamba.errors import ConfigurationError, UpstreamError
from llm.schemas import ExtractionRequest
from .base import LLMProvider

logger = logging.getLogger(__name__)

class OpenAIProvider(LLMProvider):
    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        base_url: str = "https://api.openai.com/v1",
        timeout_s: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = (api_key or "").strip()
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._transport = transport

        if not self.api_key:
            raise ConfigurationError("OPENAI_KEY is missing")

    async def generate(self, request: ExtractionRequest) -> Optional[str]:
        url = f"{self.base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": request.model or self.model,
            "messages": [request.to_chat_message()],
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
                r = await client.post(url, headers=headers, json=payload)
                r.raise_for_status()
                data = r.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamError(f"OpenAI returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"OpenAI request failed: {e.__class__.__name__}: {e}") from e
        except ValueError as e:
            raise UpstreamError(f"OpenAI returned a non-JSON body: {e}") from e

        if not isinstance(data, dict):
            raise UpstreamError("OpenAI returned an unexpected body")

        choices = data.get("choices") or []
        if not choices:
            logger.warning("OpenAI response contained no choices")
            return None
        message = choices[0].get("message") or {}
        return message.get("content")
