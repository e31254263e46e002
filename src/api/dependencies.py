import logging

from aicalamba.config import Settings, load_settings
from api import state
from api.backend import CalendarBackend
from llm.llm_client import LLMClient, build_provider
from screenshot.factory import build_screenshot_provider
from storage.image_cache import LastImageCache

logger = logging.getLogger(__name__)


def build_backend(settings: Settings) -> CalendarBackend:
    """Wire providers from settings. Raises ConfigurationError when credentials are missing."""
    settings.validate()
    return CalendarBackend(
        llm_client=LLMClient(provider=build_provider(settings)),
        screenshot_provider=build_screenshot_provider(settings),
        image_cache=state.image_cache,
    )


def get_settings() -> Settings:
    if state.settings is None:
        state.settings = load_settings()
    return state.settings


def get_backend() -> CalendarBackend:
    if state.backend is None:
        logger.info("Backend not initialized at startup, building it now")
        state.backend = build_backend(get_settings())
    return state.backend


def get_image_cache() -> LastImageCache:
    return state.image_cache
