from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Optional

from llm.schemas import ExtractionRequest

class LLMProvider(ABC):
    @abstractmethod
    async def generate(self, request: ExtractionRequest) -> Optional[str]:
        """
        Must return the model output as TEXT, or None when the model sent no content.
        Transport and status failures raise UpstreamError.
        """
        raise NotImplementedError
