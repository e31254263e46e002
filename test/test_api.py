import asyncio
import importlib
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from icalendar import Calendar

from aicalamba.config import Settings
from aicalamba.errors import UpstreamError
from api.backend import CalendarBackend
from api.dependencies import get_backend, get_image_cache, get_settings
from llm.llm_client import LLMClient
from llm.providers.mock_provider import MockProvider
from storage.image_cache import LastImageCache


def _import_app():
    # Import lazily so environment variables (if any) can be set before import.
    return importlib.import_module("api.main")


@pytest.fixture
def make_client():
    mod = _import_app()

    def _make(provider, screenshot, cache=None, settings=None):
        cache = cache or LastImageCache()
        backend = CalendarBackend(
            llm_client=LLMClient(provider=provider),
            screenshot_provider=screenshot,
            image_cache=cache,
        )
        mod.app.dependency_overrides[get_backend] = lambda: backend
        mod.app.dependency_overrides[get_image_cache] = lambda: cache
        mod.app.dependency_overrides[get_settings] = lambda: settings or Settings(llm_provider="mock")
        return TestClient(mod.app)

    yield _make
    mod.app.dependency_overrides.clear()


def test_index_serves_form(make_client, fake_provider_factory, fake_screenshot_factory):
    client = make_client(fake_provider_factory("x"), fake_screenshot_factory())
    r = client.get("/")
    assert r.status_code == 200
    assert "text/html" in r.headers["content-type"]
    assert 'action="/text"' in r.text
    assert 'action="/image"' in r.text


def test_text_dinner_tomorrow_returns_one_hour_event(make_client, fake_screenshot_factory):
    screenshot = fake_screenshot_factory()
    client = make_client(MockProvider(), screenshot)

    r = client.post("/text", data={"text": "Dinner with Alex tomorrow at 7pm"})

    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/plain")
    assert screenshot.urls == []

    event = Calendar.from_ical(r.text).walk("VEVENT")[0]
    start = event.decoded("DTSTART")
    end = event.decoded("DTEND")
    assert end - start == timedelta(hours=1)
    assert str(start.tzinfo) == "Europe/Berlin"
    today = datetime.now(timezone.utc).date()
    assert start.date() in {today, today - timedelta(days=1)}


def test_text_returns_model_output_verbatim(make_client, fake_provider_factory, fake_screenshot_factory, sample_ics):
    client = make_client(fake_provider_factory(sample_ics), fake_screenshot_factory())
    r = client.post("/text", data={"text": "Dinner with Alex tomorrow at 7pm"})
    assert r.status_code == 200
    assert r.text == sample_ics


def test_url_capture_failure_is_a_generic_500(make_client, fake_provider_factory, unreachable_screenshot):
    provider = fake_provider_factory("unused")
    client = make_client(provider, unreachable_screenshot)

    r = client.post("/text", data={"text": "https://example.com/event"})

    assert r.status_code == 500
    assert r.text == "Internal server error"
    assert unreachable_screenshot.urls == ["https://example.com/event"]
    assert provider.requests == []


def test_url_success_fills_last_image(make_client, fake_provider_factory, fake_screenshot_factory, jpeg_bytes, sample_ics):
    client = make_client(fake_provider_factory(sample_ics), fake_screenshot_factory(image=jpeg_bytes))

    assert client.get("/image/last").status_code == 404

    r = client.post("/text", data={"text": "https://example.com/event"})
    assert r.status_code == 200

    last = client.get("/image/last")
    assert last.status_code == 200
    assert last.headers["content-type"] == "image/jpeg"
    assert last.content == jpeg_bytes


def test_upstream_detail_is_not_leaked(make_client, fake_screenshot_factory):
    class LeakyProvider:
        async def generate(self, request):
            raise UpstreamError("HTTP 401 for key sk-secret-123")

    client = make_client(LeakyProvider(), fake_screenshot_factory())
    r = client.post("/text", data={"text": "Lunch on Friday"})
    assert r.status_code == 500
    assert "sk-secret" not in r.text


def test_empty_model_response_is_never_an_empty_200(make_client, fake_provider_factory, fake_screenshot_factory):
    client = make_client(fake_provider_factory(""), fake_screenshot_factory())
    r = client.post("/text", data={"text": "Lunch on Friday"})
    assert r.status_code == 500


def test_invalid_calendar_still_returns_200(make_client, fake_provider_factory, fake_screenshot_factory):
    client = make_client(fake_provider_factory("Not really iCal"), fake_screenshot_factory())
    r = client.post("/text", data={"text": "Lunch on Friday"})
    assert r.status_code == 200
    assert r.text == "Not really iCal"


def test_blank_text_is_400(make_client, fake_provider_factory, fake_screenshot_factory):
    client = make_client(fake_provider_factory("x"), fake_screenshot_factory())
    r = client.post("/text", data={"text": "   "})
    assert r.status_code == 400


@pytest.mark.parametrize("data", [{"text": ""}, {}])
def test_empty_or_missing_text_is_400(make_client, fake_provider_factory, fake_screenshot_factory, data):
    provider = fake_provider_factory("x")
    client = make_client(provider, fake_screenshot_factory())

    r = client.post("/text", data=data)

    assert r.status_code == 400
    assert r.headers["content-type"].startswith("text/plain")
    assert r.text == "Text must not be empty"
    assert provider.requests == []


def test_image_without_file_part_is_400(make_client, fake_provider_factory, fake_screenshot_factory):
    provider = fake_provider_factory("x")
    client = make_client(provider, fake_screenshot_factory())

    r = client.post("/image", data={"note": "no file here"})

    assert r.status_code == 400
    assert "No image" in r.text
    assert provider.requests == []


def test_image_upload_is_converted(make_client, fake_provider_factory, fake_screenshot_factory, jpeg_bytes, sample_ics):
    provider = fake_provider_factory(sample_ics)
    client = make_client(provider, fake_screenshot_factory())

    r = client.post("/image", files={"image": ("flyer.jpg", jpeg_bytes, "image/jpeg")})

    assert r.status_code == 200
    assert r.text == sample_ics
    assert provider.requests[0].images[0].image_url.url.startswith("data:image/jpeg;base64,")


def test_first_file_part_is_used_whatever_its_name(make_client, fake_provider_factory, fake_screenshot_factory, png_bytes, sample_ics):
    provider = fake_provider_factory(sample_ics)
    client = make_client(provider, fake_screenshot_factory())

    r = client.post("/image", files={"upload": ("flyer.png", png_bytes, "image/png")})

    assert r.status_code == 200
    assert len(provider.requests) == 1


def test_disguised_non_image_is_rejected(make_client, fake_provider_factory, fake_screenshot_factory):
    provider = fake_provider_factory("x")
    client = make_client(provider, fake_screenshot_factory())

    r = client.post("/image", files={"image": ("flyer.jpg", b"MZ\x90\x00 not an image", "image/jpeg")})

    assert r.status_code == 400
    assert provider.requests == []


def test_oversized_upload_is_413(make_client, fake_provider_factory, fake_screenshot_factory, jpeg_bytes):
    provider = fake_provider_factory("x")
    settings = Settings(llm_provider="mock", max_body_bytes=len(jpeg_bytes) - 1)
    client = make_client(provider, fake_screenshot_factory(), settings=settings)

    r = client.post("/image", files={"image": ("flyer.jpg", jpeg_bytes, "image/jpeg")})

    assert r.status_code == 413
    assert provider.requests == []


def _chunks(body, size=32):
    for i in range(0, len(body), size):
        yield body[i:i + size]


def test_chunked_body_above_limit_is_413(make_client, fake_provider_factory, fake_screenshot_factory):
    provider = fake_provider_factory("x")
    settings = Settings(llm_provider="mock", max_body_bytes=100)
    client = make_client(provider, fake_screenshot_factory(), settings=settings)

    # No Content-Length: the size is only known while reading
    r = client.post(
        "/text",
        content=_chunks(b"text=" + b"a" * 200),
        headers={"content-type": "application/x-www-form-urlencoded"},
    )

    assert r.status_code == 413
    assert provider.requests == []


def test_chunked_body_within_limit_is_accepted(make_client, fake_provider_factory, fake_screenshot_factory, sample_ics):
    provider = fake_provider_factory(sample_ics)
    settings = Settings(llm_provider="mock", max_body_bytes=1000)
    client = make_client(provider, fake_screenshot_factory(), settings=settings)

    r = client.post(
        "/text",
        content=_chunks(b"text=Lunch+on+Friday"),
        headers={"content-type": "application/x-www-form-urlencoded"},
    )

    assert r.status_code == 200
    assert r.text == sample_ics


def test_last_image_serves_cached_bytes(make_client, fake_provider_factory, fake_screenshot_factory, jpeg_bytes):
    cache = LastImageCache()
    asyncio.run(cache.put(jpeg_bytes))
    client = make_client(fake_provider_factory("x"), fake_screenshot_factory(), cache=cache)

    r = client.get("/image/last")
    assert r.status_code == 200
    assert r.content == jpeg_bytes


def test_health_and_metrics(make_client, fake_provider_factory, fake_screenshot_factory, sample_ics):
    client = make_client(fake_provider_factory(sample_ics), fake_screenshot_factory())
    client.post("/text", data={"text": "Lunch on Friday"})

    h = client.get("/health")
    assert h.status_code == 200
    assert h.json()["status"] == "healthy"

    m = client.get("/metrics")
    assert m.status_code == 200
    assert "text/plain" in m.headers.get("content-type", "")
    found = any(
        line.startswith('aicalamba_requests_total{endpoint="/text",status="ok"}')
        for line in m.text.splitlines()
    )
    assert found, "Expected aicalamba_requests_total sample line for /text"


def test_log_lines_carry_time_level_and_message():
    mod = _import_app()
    assert mod.LOG_FORMAT == "%(asctime)s [%(levelname)s] %(message)s"
