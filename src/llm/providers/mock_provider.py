from __future__ import annotations
import re
from datetime import date
from typing import Optional
from llm.schemas import ExtractionRequest
from .base import LLMProvider

_CURRENT_DATE_RE = re.compile(r"current date, which is (\d{4}-\d{2}-\d{2})")

class MockProvider(LLMProvider):
    async def generate(self, request: ExtractionRequest) -> Optional[str]:
        """
        Returns a fixed one-hour event at 19:00 Europe/Berlin on the date named in the prompt.
        """
        match = _CURRENT_DATE_RE.search(request.prompt_text)
        day = date.fromisoformat(match.group(1)) if match else date.today()
        stamp = day.strftime("%Y%m%d")
        summary = "Event from image" if request.images else "Event from text"

        return "\r\n".join([
            "BEGIN:VCALENDAR",
            "VERSION:2.0",
            "PRODID:-//aicalamba//mock//EN",
            "BEGIN:VEVENT",
            f"UID:mock-{stamp}@aicalamba",
            f"DTSTAMP:{stamp}T000000Z",
            f"DTSTART;TZID=Europe/Berlin:{stamp}T190000",
            f"DTEND;TZID=Europe/Berlin:{stamp}T200000",
            f"SUMMARY:{summary}",
            "END:VEVENT",
            "END:VCALENDAR",
        ]) + "\r\n"
