"""
Exception classes for the shop client core.

All exceptions inherit from ShopError and provide structured error
information with codes, messages, and optional details. Exceptions are
raised inside the stack and converted to NetworkError values at the
network client boundary.
"""

from typing import Optional

from .enums import NetworkError


class ShopError(Exception):
    """Base exception for all shop client errors."""

    # Taxonomy member reported when this error reaches the client boundary
    network_error: Optional[NetworkError] = None

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(ShopError):
    """Raised when configuration values cannot be used (invalid base URL, bad numbers)."""

    network_error = NetworkError.INVALID_URL


class InvalidRequestError(ShopError):
    """Raised when an endpoint cannot be turned into a transport request."""

    network_error = NetworkError.BAD_REQUEST


class InvalidURLError(InvalidRequestError):
    """Raised when an endpoint's base URL is empty, scheme-less or has no host."""

    network_error = NetworkError.INVALID_URL


class TransportError(ShopError):
    """Raised when the transport fails to execute a request."""

    network_error = NetworkError.NO_DATA


class DecodingError(ShopError):
    """Raised when a payload cannot be decoded into the requested type."""

    network_error = NetworkError.DECODING_FAILED


class StorageError(ShopError):
    """Raised when persistence operations fail (file I/O, serialization)."""

    pass


class TamperingError(StorageError):
    """Raised when HMAC validation fails, indicating data tampering."""

    pass


class AuthorizationError(ShopError):
    """Raised when no usable access token can be obtained."""

    network_error = NetworkError.AUTHORIZATION_FAILED
