"""
dsdk.core.errors - Exception taxonomy
=====================================

Every error raised by the SDK derives from ``DsdkError``. Failures tied to an
HTTP response carry the raw response body so callers can attempt their own
decoding.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Optional

if TYPE_CHECKING:
    from dsdk.core.models import ErrorResponse


class DsdkError(RuntimeError):
    """Base class for all SDK errors."""


class ConfigError(DsdkError, ValueError):
    """Invalid connection configuration (timeout string, header pair, ...)."""


class TemplateError(ConfigError):
    """A URL template could not be rendered with the supplied values."""


class EncodingError(DsdkError, ValueError):
    """Request parameters were given in a shape that cannot be encoded."""


class TransportError(DsdkError):
    """
    Network-level failure (DNS, refused connection, timeout).

    Never retried. ``body`` is always empty.
    """

    def __init__(self, message: str, url: str = "") -> None:
        super().__init__(message)
        self.url = url
        self.body = b""


class APIError(DsdkError):
    """
    Exception raised when the storage API answers with an error.

    Attributes
    ----------
    status : int
        HTTP status code
    body : bytes
        Raw response body
    url : str
        The URL that was called
    headers : dict
        Response headers
    error : ErrorResponse or None
        The body decoded as an error response, when it is one
    """

    def __init__(
        self,
        message: str,
        status: int = 0,
        body: bytes = b"",
        url: str = "",
        headers: Optional[Dict[str, str]] = None,
        error: Optional["ErrorResponse"] = None,
    ) -> None:
        snippet = (body or b"")[:1200].decode("utf-8", errors="replace")
        text = message
        if url:
            text = f"{text} for {url}"
        if snippet:
            text = f"{text}: {snippet}"
        super().__init__(text)
        self.message = message
        self.status = status
        self.body = body or b""
        self.url = url
        self.headers = headers or {}
        self.error = error


class FatalAPIError(APIError):
    """The response status is in the error set and was not resolved by re-login."""


class MalformedResponseError(APIError):
    """The response body could not be decoded into the expected schema."""


class AuthError(APIError):
    """Login failed or the login response held no token."""
