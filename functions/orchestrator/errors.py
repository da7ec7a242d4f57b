"""Error taxonomy for the build status pipeline."""

from __future__ import annotations


class StatusRelayError(Exception):
    """Base exception for failures reported back to the caller."""


class InputValidationError(StatusRelayError):
    """Raised when an owner or repository name cannot address a repository."""


class TransportError(StatusRelayError):
    """Raised when the upstream server could not be reached."""


class UpstreamHTTPError(StatusRelayError):
    """
    Raised when the upstream server answers with an unexpected status.

    The 404 on the commit status endpoint is not an error and never
    produces this exception.
    """

    def __init__(self, status_code: int, body: str = ""):
        message = f"upstream responded {status_code}"
        if body:
            message = f"{message} - {body}"
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class DecodeError(StatusRelayError):
    """Raised when an upstream body does not parse into the expected shape."""
