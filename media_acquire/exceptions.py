"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class MediaAcquireError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(MediaAcquireError):
    """Raised for invalid settings or when a save directory cannot be created."""


class InvalidReferenceError(MediaAcquireError):
    """Raised when a URL has no http(s) scheme or no host."""


class NetworkError(MediaAcquireError):
    """Raised on connection failures, DNS errors and timeouts."""


class HTTPStatusError(MediaAcquireError):
    """Raised when the server answers with a non-2xx status code."""

    def __init__(self, status: int, url: str = ""):
        self.status = status
        self.url = url
        super().__init__(f"download failed with status: {status}")


class EmptyContentError(MediaAcquireError):
    """Raised when a transfer completes without writing a single byte."""


class TypeMismatchError(MediaAcquireError):
    """
    Raised when the sniffed content does not belong to the expected media class.
    """

    def __init__(self, expected: str, detected: str | None = None):
        self.expected = expected
        self.detected = detected
        found = detected or "unknown"
        super().__init__(f"file is not a valid {expected} (detected: {found})")


class MediaIOError(MediaAcquireError):
    """Raised when a local filesystem operation fails."""


class NoValidImagesError(MediaAcquireError):
    """Raised when a batch of image references produces no paths."""


class DownloadFailure(MediaAcquireError):
    """Wraps the error that aborted processing of a single reference."""

    def __init__(self, reference: str, cause: Exception, kind: str = "media"):
        self.reference = reference
        self.cause = cause
        super().__init__(f"failed to download {kind} {reference}: {cause}")
