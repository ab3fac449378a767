from __future__ import annotations


class StampError(Exception):
    """Base error for a job that cannot produce a document."""

    default_suggestion: str | None = None

    def __init__(self, message: str, *, suggestion: str | None = None):
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion or self.default_suggestion


class RequestError(StampError):
    default_suggestion = 'Check the request fields and their types.'


class RenderError(StampError):
    default_suggestion = 'Check the HTML content and try again'


class LoadError(StampError):
    default_suggestion = 'Make sure the input is a valid, unencrypted PDF.'


class CodeImageError(StampError):
    default_suggestion = 'Provide a non-empty code payload.'


class SerializeError(StampError):
    pass


class WatermarkFetchError(StampError):
    """Watermark could not be downloaded; the job continues without it."""


class WatermarkDecodeError(StampError):
    """Watermark bytes are not a usable image; the job continues without it."""
