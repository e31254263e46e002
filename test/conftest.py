import io

import pytest
from PIL import Image

from aicalamba.errors import ScreenshotError

SAMPLE_ICS = (
    "BEGIN:VCALENDAR\r\n"
    "VERSION:2.0\r\n"
    "PRODID:-//test//EN\r\n"
    "BEGIN:VEVENT\r\n"
    "UID:dinner@test\r\n"
    "DTSTAMP:20261016T120000Z\r\n"
    "DTSTART;TZID=Europe/Berlin:20261017T190000\r\n"
    "DTEND;TZID=Europe/Berlin:20261017T200000\r\n"
    "SUMMARY:Dinner with Alex\r\n"
    "END:VEVENT\r\n"
    "END:VCALENDAR\r\n"
)


class FakeProvider:
    def __init__(self, response_text):
        self._response_text = response_text
        self.requests = []

    async def generate(self, request):
        self.requests.append(request)
        return self._response_text


class FailingProvider:
    def __init__(self, exc):
        self._exc = exc
        self.calls = 0

    async def generate(self, request):
        self.calls += 1
        raise self._exc


class FakeScreenshotProvider:
    def __init__(self, image=None, error=None, events=None):
        self._image = image
        self._error = error
        self.urls = []
        self.events = events

    async def capture(self, url):
        self.urls.append(url)
        if self.events is not None:
            self.events.append("capture")
        if self._error is not None:
            raise self._error
        return self._image


def _image_bytes(fmt: str, color=(200, 30, 30)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (16, 12), color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def sample_ics():
    return SAMPLE_ICS


@pytest.fixture
def jpeg_bytes():
    return _image_bytes("JPEG")


@pytest.fixture
def png_bytes():
    return _image_bytes("PNG", color=(10, 120, 220))


@pytest.fixture
def fake_provider_factory():
    def _make(response_text):
        return FakeProvider(response_text)
    return _make


@pytest.fixture
def fake_screenshot_factory():
    def _make(image=None, error=None, events=None):
        return FakeScreenshotProvider(image=image, error=error, events=events)
    return _make


@pytest.fixture
def unreachable_screenshot():
    return FakeScreenshotProvider(error=ScreenshotError())
