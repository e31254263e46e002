from aicalamba.config import Settings
from aicalamba.errors import ConfigurationError
from screenshot.providers.base import ScreenshotProvider


def build_screenshot_provider(settings: Settings) -> ScreenshotProvider:
    if settings.screenshot_provider == "apiflash":
        from screenshot.providers.apiflash_provider import ApiFlashConfig, ApiFlashProvider

        if not settings.apiflash_key:
            raise ConfigurationError("APIFLASH_KEY is missing")
        return ApiFlashProvider(
            ApiFlashConfig(
                access_key=settings.apiflash_key,
                delay_s=settings.apiflash_delay_s,
                timeout_s=settings.screenshot_timeout_s,
            )
        )

    if settings.screenshot_provider == "browser":
        # Playwright is only imported when the browser strategy is selected
        from screenshot.providers.browser_provider import BrowserConfig, BrowserProvider

        if not settings.browser_endpoint:
            raise ConfigurationError("BROWSER_ENDPOINT is missing")
        return BrowserProvider(
            BrowserConfig(
                endpoint=settings.browser_endpoint,
                settle_s=settings.browser_settle_s,
                navigation_timeout_s=settings.screenshot_timeout_s,
            )
        )

    raise ConfigurationError(f"Unknown SCREENSHOT_PROVIDER: {settings.screenshot_provider!r}")
