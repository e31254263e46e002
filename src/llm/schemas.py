from __future__ import annotations
import base64
from typing import List, Literal, Optional, Union
from pydantic import BaseModel, Field

JPEG_MIME_TYPE = "image/jpeg"


def jpeg_data_uri(data: bytes) -> str:
    return f"data:{JPEG_MIME_TYPE};base64,{base64.b64encode(data).decode('ascii')}"


class ImageUrl(BaseModel):
    url: str


class TextPart(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ImageUrlPart(BaseModel):
    type: Literal["image_url"] = "image_url"
    image_url: ImageUrl

    @classmethod
    def from_jpeg(cls, data: bytes) -> "ImageUrlPart":
        return cls(image_url=ImageUrl(url=jpeg_data_uri(data)))

    @property
    def base64_payload(self) -> str:
        return self.image_url.url.split(",", 1)[1]


ContentPart = Union[TextPart, ImageUrlPart]


class ExtractionRequest(BaseModel):
    """One user message: either plain text, or instruction text plus an image."""

    model: Optional[str] = None
    content: Union[str, List[ContentPart]] = Field(...)

    @property
    def prompt_text(self) -> str:
        if isinstance(self.content, str):
            return self.content
        return "\n".join(p.text for p in self.content if isinstance(p, TextPart))

    @property
    def images(self) -> List[ImageUrlPart]:
        if isinstance(self.content, str):
            return []
        return [p for p in self.content if isinstance(p, ImageUrlPart)]

    def to_chat_message(self) -> dict:
        if isinstance(self.content, str):
            return {"role": "user", "content": self.content}
        return {"role": "user", "content": [p.model_dump() for p in self.content]}
