from __future__ import annotations

from enum import Enum

GENERIC_ERROR_MESSAGE = "Request failed"


class ErrorKind(str, Enum):
    NETWORK = "network"
    API = "api"
    AUTH = "auth"
    INVALID_RESPONSE = "invalid_response"


class HomelabClientError(Exception):
    """Base client error."""

    kind: ErrorKind = ErrorKind.NETWORK

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else ""


class NetworkError(HomelabClientError):
    """Transport/network layer error."""

    kind = ErrorKind.NETWORK


class ApiError(HomelabClientError):
    kind = ErrorKind.API

    def __init__(self, status_code: int, message: str, details: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class AuthError(ApiError):
    """Auth-related API error."""

    kind = ErrorKind.AUTH


class InvalidResponseError(HomelabClientError):
    """Response body was not JSON or did not match the expected shape."""

    kind = ErrorKind.INVALID_RESPONSE

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.details = details


def error_message(exc: BaseException, fallback: str) -> str:
    if isinstance(exc, HomelabClientError) and exc.message:
        return exc.message
    return fallback
