from .client import HomelabClient
from .errors import ApiError, AuthError, ErrorKind, HomelabClientError, InvalidResponseError, NetworkError

__all__ = [
    "HomelabClient",
    "ApiError",
    "AuthError",
    "ErrorKind",
    "HomelabClientError",
    "InvalidResponseError",
    "NetworkError",
]
