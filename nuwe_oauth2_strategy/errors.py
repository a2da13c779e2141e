"""
Error types raised by the nuwe strategy and the OAuth2 engine.

Runtime errors are handed back to the host (through the ``done``
continuation or as ``AuthResult.error``); only ``ConfigurationError`` is
raised directly, at construction time.
"""

from typing import Optional


class StrategyError(Exception):
    """Base class for all errors raised by this package."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ConfigurationError(StrategyError):
    """A required option is missing or invalid."""


class ProviderAPIError(StrategyError):
    """The provider answered with its minimal ``{"error": "..."}`` body."""

    def __init__(self, message: str):
        super().__init__(message)
        self.code = message


class TransportError(StrategyError):
    """HTTP or network failure without a recognizable error body."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self):
        if self.cause is not None:
            return f"{self.message} ({self.cause})"
        return self.message


class ParseError(StrategyError):
    """A response body could not be decoded as JSON."""


class TokenError(StrategyError):
    """OAuth2-standard error returned by the token endpoint."""

    def __init__(
        self,
        message: Optional[str] = None,
        code: str = "invalid_request",
        uri: Optional[str] = None,
        status: int = 500,
    ):
        super().__init__(message or code)
        self.code = code
        self.uri = uri
        self.status = status


class AuthorizationError(StrategyError):
    """Error reported by the provider on the authorization callback."""

    _STATUS_BY_CODE = {
        "access_denied": 403,
        "server_error": 502,
        "temporarily_unavailable": 503,
    }

    def __init__(
        self,
        message: Optional[str] = None,
        code: str = "server_error",
        uri: Optional[str] = None,
        status: Optional[int] = None,
    ):
        super().__init__(message or code)
        self.code = code
        self.uri = uri
        self.status = status or self._STATUS_BY_CODE.get(code, 500)


class FetchError(StrategyError):
    """
    Raw failure of an authenticated GET.

    ``data`` holds the response body when the server answered with a
    non-2xx status, and is ``None`` when no response was received.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        data: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.data = data
