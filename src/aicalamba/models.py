from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class Modality(str, Enum):
    TEXT = "text"
    IMAGE = "image"


class RouteKind(str, Enum):
    URL = "url"
    TEXT = "text"


@dataclass(frozen=True)
class TextPayload:
    text: str

    @property
    def modality(self) -> Modality:
        return Modality.TEXT

    def __repr__(self) -> str:
        return f"TextPayload({self.text!r})"


@dataclass(frozen=True)
class ImagePayload:
    # Always JPEG bytes; see aicalamba.images.ensure_jpeg
    data: bytes

    @property
    def modality(self) -> Modality:
        return Modality.IMAGE

    def __repr__(self) -> str:
        # Image bytes are large, only show the head for logs
        return f"ImagePayload({len(self.data)} bytes, head={self.data[:20]!r})"


InputPayload = Union[TextPayload, ImagePayload]


@dataclass(frozen=True)
class InputRoute:
    """Outcome of classifying the text submitted to /text."""

    kind: RouteKind
    value: str

    @property
    def is_url(self) -> bool:
        return self.kind is RouteKind.URL
