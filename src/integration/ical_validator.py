import logging

from icalendar import Calendar

logger = logging.getLogger(__name__)


class ICalValidator:
    """Advisory sanity check of model output.

    Failing the check only gets logged. Clients might tolerate minor format
    deviations, so the text is forwarded either way.
    """

    def validate(self, content: str) -> bool:
        try:
            calendar = Calendar.from_ical(content)
        except Exception as e:  # icalendar raises ValueError, KeyError, IndexError...
            logger.warning(f"Failed to parse iCal content: {e}")
            return False

        if calendar.name != "VCALENDAR":
            logger.warning(f"iCal content is a bare {calendar.name}, not a VCALENDAR")
            return False

        events = calendar.walk("VEVENT")
        if not events:
            logger.warning("iCal content parsed but contains no VEVENT")
            return False

        logger.debug(f"Parsed iCal content successfully ({len(events)} event(s))")
        return True


def validate_ical(content: str) -> bool:
    return ICalValidator().validate(content)
