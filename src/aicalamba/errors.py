from __future__ import annotations


class AicalambaError(Exception):
    """Base class for every error raised by the conversion pipeline."""


class ConfigurationError(AicalambaError):
    """Required configuration is missing or invalid."""


class InputError(AicalambaError):
    """The caller sent something we cannot work with (maps to HTTP 400).

    The message of an InputError is shown to the caller, so keep it free of
    infrastructure details.
    """


class InvalidImageError(InputError):
    pass


class ScreenshotError(AicalambaError):
    def __init__(self, message: str = "screenshot acquisition failed"):
        super().__init__(message)


class ExtractionError(AicalambaError):
    """The language model round trip did not produce calendar text."""


class UpstreamError(ExtractionError):
    pass


class NoResponseContentError(ExtractionError):
    def __init__(self, message: str = "no response content"):
        super().__init__(message)
