from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from aicalamba.models import Modality

ASSUMED_TIMEZONE = "Europe/Berlin"

COMMON_PROMPT_TEMPLATE = (
    "Extract the information and format it in text format according to the iCal specification.\n"
    "Return nothing but that text.\n"
    "If date info is missing, such as the current year, month or day, "
    "fill it in from the current date, which is {today}.\n"
    "If no wall clock time is mentioned, make it an all-day event.\n"
    "Assume event times are in {tz} aka CEST timezone.\n"
    "Pay attention to events spanning multiple days, and recurring events.\n"
    "If only a start time is mentioned but no end time, assume one hour duration."
)

IMAGE_PREFIX = "The following is a picture containing information for an event."
IMAGE_SUFFIX = "The image is shown below."
TEXT_PREFIX = "The following is the textual description of an event."
TEXT_SUFFIX = "The text is:"


def _utc_date(now: datetime) -> str:
    # Naive datetimes are taken to be UTC already
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m-%d")


def build_common_prompt(now: datetime) -> str:
    return COMMON_PROMPT_TEMPLATE.format(today=_utc_date(now), tz=ASSUMED_TIMEZONE)


def build_prompt(modality: Modality, now: datetime, text: Optional[str] = None) -> str:
    """Build the instruction block sent to the model.

    For images the picture itself travels as a separate content part, so the
    prompt only announces it. For text the event description is appended
    after the instructions.
    """
    common = build_common_prompt(now)

    if modality is Modality.IMAGE:
        return f"{IMAGE_PREFIX} {common}\n{IMAGE_SUFFIX}"
    if modality is Modality.TEXT:
        if text is None:
            raise ValueError("text modality requires the event text")
        return f"{TEXT_PREFIX} {common}\n{TEXT_SUFFIX}\n\n{text}"
    raise TypeError(f"Unsupported modality: {modality!r}")
