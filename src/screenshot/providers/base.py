from __future__ import annotations
from abc import ABC, abstractmethod

class ScreenshotProvider(ABC):
    @abstractmethod
    async def capture(self, url: str) -> bytes:
        """
        Return JPEG bytes of the rendered page.
        Every failure (transport, credentials, timeout, undecodable image) raises ScreenshotError.
        """
        raise NotImplementedError
