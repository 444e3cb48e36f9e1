"""
Enumeration types for the shop client core.

These enums provide type-safe constants for HTTP methods, the closed
network error taxonomy, storage backends and logging levels.
"""

from enum import Enum


class HTTPMethod(Enum):
    """HTTP methods supported by endpoint descriptors."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


class NetworkError(Enum):
    """
    Closed set of failure kinds shared across the stack.

    Each member carries a fixed numeric code and a human-readable message.
    """

    INVALID_URL = "invalid_url"
    NO_DATA = "no_data"
    DECODING_FAILED = "decoding_failed"
    BAD_REQUEST = "bad_request"
    NOT_FOUND = "not_found"
    AUTHORIZATION_FAILED = "authorization_failed"
    SERVER_ERROR = "server_error"
    TIMEOUT = "timeout"
    NO_INTERNET_CONNECTION = "no_internet_connection"

    @property
    def code(self) -> int:
        """Numeric error code."""
        return _ERROR_CODES[self]

    @property
    def message(self) -> str:
        """Human-readable description of the failure."""
        return _ERROR_MESSAGES[self]


_ERROR_CODES = {
    NetworkError.INVALID_URL: -1001,
    NetworkError.NO_DATA: -1002,
    NetworkError.DECODING_FAILED: -1003,
    NetworkError.BAD_REQUEST: 400,
    NetworkError.NOT_FOUND: 404,
    NetworkError.AUTHORIZATION_FAILED: 401,
    NetworkError.SERVER_ERROR: 500,
    NetworkError.TIMEOUT: -1004,
    NetworkError.NO_INTERNET_CONNECTION: -1005,
}

_ERROR_MESSAGES = {
    NetworkError.INVALID_URL: "The provided URL is invalid or malformed",
    NetworkError.NO_DATA: "No data received from the server",
    NetworkError.DECODING_FAILED: "Failed to decode the server response",
    NetworkError.BAD_REQUEST: "The request was invalid or malformed",
    NetworkError.NOT_FOUND: "The requested resource was not found",
    NetworkError.AUTHORIZATION_FAILED: "Authentication or authorization failed",
    NetworkError.SERVER_ERROR: "Internal server error occurred",
    NetworkError.TIMEOUT: "The request timed out",
    NetworkError.NO_INTERNET_CONNECTION: "No internet connection available",
}


class LogLevel(Enum):
    """Logging severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class StorageType(Enum):
    """Token storage backends."""

    SECURE = "secure"
    PREFERENCES = "preferences"


class HomeSectionType(Enum):
    """Section kinds of the home feed."""

    CATEGORY = "CATEGORY"
    BANNER = "BANNER"
    SHOP = "SHOP"
    FIXED_BANNER = "FIXEDBANNER"
