import logging
import re
from urllib.parse import urlsplit

from aicalamba.models import InputRoute, RouteKind

logger = logging.getLogger(__name__)

# RFC 3986: scheme = ALPHA *( ALPHA / DIGIT / "+" / "-" / "." )
_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")
_WHITESPACE_RE = re.compile(r"\s")


def is_absolute_url(text: str) -> bool:
    """Strict check: scheme and host must both be present, no heuristics."""
    if not text or _WHITESPACE_RE.search(text):
        return False
    try:
        parts = urlsplit(text)
        # .port raises ValueError on out-of-range or non-numeric ports
        parts.port
    except ValueError:
        return False
    if not _SCHEME_RE.match(parts.scheme or ""):
        return False
    return bool(parts.hostname)


class InputClassifier:

    def classify(self, text: str) -> InputRoute:
        value = text.strip()
        if is_absolute_url(value):
            logger.debug(f"Text input is URL: {value}")
            return InputRoute(kind=RouteKind.URL, value=value)
        logger.debug("Text input is raw text.")
        return InputRoute(kind=RouteKind.TEXT, value=value)


def classify_input(text: str) -> InputRoute:
    return InputClassifier().classify(text)
