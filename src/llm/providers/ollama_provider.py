from __future__ import annotations
from typing import Optional
import httpx
from aicalamba.errors import UpstreamError
from llm.schemas import ExtractionRequest
from .base import LLMProvider

class OllamaProvider(LLMProvider):
    """Local models through Ollama's chat API. Images need a vision model such as llava."""

    def __init__(
        self,
        model: str = "llava",
        base_url: str = "http://localhost:11434",
        timeout_s: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._transport = transport

    async def generate(self, request: ExtractionRequest) -> Optional[str]:
        url = f"{self.base_url}/api/chat"
        message = {"role": "user", "content": request.prompt_text}
        images = [part.base64_payload for part in request.images]
        if images:
            # Ollama takes raw base64, not data URIs
            message["images"] = images

        payload = {
            "model": request.model or self.model,
            "stream": False,
            "messages": [message],
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
                r = await client.post(url, json=payload)
                r.raise_for_status()
                data = r.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamError(f"Ollama returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"Ollama request failed: {e.__class__.__name__}: {e}") from e
        except ValueError as e:
            raise UpstreamError(f"Ollama returned a non-JSON body: {e}") from e

        if not isinstance(data, dict):
            raise UpstreamError("Ollama returned an unexpected body")

        return (data.get("message") or {}).get("content")
