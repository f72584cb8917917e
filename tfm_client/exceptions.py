"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class TfmClientError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(TfmClientError):
    """Raised when the server URL or cache directory is missing or invalid."""


class NetworkError(TfmClientError):
    """Raised when the transport fails before a usable response arrives."""


class RequestTimeoutError(NetworkError):
    """Raised when a catalog request does not complete within its time budget."""


class DownloadTimeoutError(RequestTimeoutError):
    """Raised when a track download does not complete within its time budget."""


class ProtocolError(TfmClientError):
    """
    Raised for malformed JSON payloads or envelopes reporting `success=false`.
    """


class HttpError(TfmClientError):
    """Raised when the server answers with an unexpected HTTP status code."""

    def __init__(self, status: int, message: str | None = None):
        super().__init__(message or f"Server returned HTTP status {status}.")
        self.status = status


class UnexpectedContentTypeError(TfmClientError):
    """Raised when a download returns an HTML page instead of audio bytes."""


class TruncatedDownloadError(TfmClientError):
    """Raised when fewer bytes arrive than the server or catalog announced."""


class WriteError(TfmClientError):
    """Raised when downloaded bytes cannot be fully written to the cache."""


class CacheInvalidError(TfmClientError):
    """
    Raised internally when a cached file fails validation. Never surfaces to callers;
    the resolver deletes the file and continues as if it were absent.
    """


class SourceUnavailableError(TfmClientError):
    """Raised when a track has no cached copy, no local file and no remote URL."""


class FetchSupersededError(TfmClientError):
    """Raised when a newer fetch for the same collection key replaced this one."""


class FetchCancelledError(TfmClientError):
    """Raised when pending requests were cancelled before the fetch completed."""
