from typing import Any, Optional


class SoundSnapError(Exception):
    """Base class for errors raised by the SoundSnap backend."""


class CallerError(SoundSnapError, ValueError):
    """Raised when the caller omits or malforms a required input."""


class UnsupportedMediaTypeError(CallerError):
    pass


class UploadTooLargeError(CallerError):
    pass


class GenerationServiceError(SoundSnapError):
    """Raised when the generation service rejects a request or cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class ResultValidationError(SoundSnapError):
    """Raised when a terminal response cannot be turned into a usable result."""


class AssetStoreError(SoundSnapError):
    """Raised when an uploaded asset cannot be stored."""
