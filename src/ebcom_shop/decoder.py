"""
Response decoder for the shop client core.

Converts raw response bytes into typed values. All decoding goes through
one shared configuration: UTF-8 JSON with ISO-8601 timestamps. Any parse
failure collapses to NetworkError.DECODING_FAILED; the structured error
and the raw payload are logged, never returned.
"""

import json
from datetime import datetime, timezone
from typing import Any, Callable, Optional, TypeVar

from .app_logger import AppLogger
from .enums import NetworkError
from .exceptions import DecodingError
from .result import Result

T = TypeVar("T")

# Exceptions raised by model parsers for malformed payloads
DECODE_EXCEPTIONS = (ValueError, TypeError, KeyError, AttributeError, RecursionError)


def parse_iso8601(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp; naive values are taken as UTC.

    Raises:
        ValueError: If the value is not an ISO-8601 timestamp
    """
    if not isinstance(value, str):
        raise TypeError(f"Expected ISO-8601 string, got {type(value).__name__}")
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_iso8601(value: datetime) -> str:
    """Format a timestamp in the shared ISO-8601 form."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def loads(data: bytes) -> Any:
    """Parse JSON bytes with the shared configuration."""
    return json.loads(data.decode("utf-8"))


def dumps(value: Any) -> bytes:
    """Serialize a JSON-compatible value with the shared configuration."""
    return json.dumps(value, ensure_ascii=False, sort_keys=True).encode("utf-8")


class ResponseDecoder:
    """Decodes raw bytes into typed values via model parsers."""

    def __init__(self, logger: Optional[AppLogger] = None) -> None:
        self._logger = logger

    def decode_or_raise(self, data: bytes, parser: Callable[[Any], T]) -> T:
        """
        Decode bytes into a value.

        Args:
            data: Raw JSON bytes
            parser: Callable building the typed value from parsed JSON
                    (e.g. HomeResponse.from_dict)

        Raises:
            DecodingError: If the bytes are not valid JSON or do not match
                the parser's schema
        """
        try:
            return parser(loads(data))
        except DECODE_EXCEPTIONS as e:
            self._log_failure(data, e)
            raise DecodingError(
                code="decoding_failed",
                message=f"Failed to decode response: {type(e).__name__}",
                details={"error": str(e)},
            ) from e

    def decode(self, data: bytes, parser: Callable[[Any], T]) -> Result[T]:
        """Decode bytes into a Result; failures become DECODING_FAILED."""
        try:
            return Result.success(self.decode_or_raise(data, parser))
        except DecodingError:
            return Result.failure(NetworkError.DECODING_FAILED)

    def _log_failure(self, data: bytes, error: Exception) -> None:
        if self._logger is None:
            return
        self._logger.log_error("decoder", "Decoding error", error=error)
        self._logger.log_error(
            "decoder",
            "Raw JSON",
            additional_data={"raw": data.decode("utf-8", errors="replace")},
        )
