"""
Application logger for the shop client core.

Every component reports through one AppLogger instance injected at
construction. Entries are structured (component, message, data), kept in
memory and, while the logger is enabled, written to a stream as JSON
lines, human-readable text, or both. Values stored under credential-like
keys never reach the stream or the in-memory entries.
"""

import json
import sys
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, TextIO

from .enums import LogLevel

_SEVERITY = [LogLevel.DEBUG, LogLevel.INFO, LogLevel.WARN, LogLevel.ERROR]

OUTPUT_FORMATS = ("json", "text", "both")

DEFAULT_MAX_ENTRIES = 1000


@dataclass
class LogEntry:
    """A single structured log record."""

    timestamp: str
    level: LogLevel
    component: str
    message: str
    data: dict = field(default_factory=dict)

    def to_json(self) -> str:
        return json.dumps(
            {
                "timestamp": self.timestamp,
                "level": self.level.value,
                "component": self.component,
                "message": self.message,
                "data": self.data,
            },
            ensure_ascii=False,
            default=str,
        )

    def to_text(self) -> str:
        # [timestamp] LEVEL [component] message {data}
        line = f"[{self.timestamp}] {self.level.value.upper()} [{self.component}] {self.message}"
        if self.data:
            line += " " + json.dumps(self.data, ensure_ascii=False, default=str)
        return line


class AppLogger:
    """
    Structured logger shared by the networking, storage and session layers.

    A disabled logger still records entries, so diagnostics can be
    inspected after the fact; only stream output is switched off. Only the
    most recent `max_entries` entries are kept.
    """

    # Substrings marking a data key as credential-bearing
    SENSITIVE_KEYS = frozenset({
        "token", "secret", "password", "authorization",
        "credential", "cookie", "api_key", "bearer",
    })

    MASK_VALUE = "***MASKED***"

    def __init__(
        self,
        output_format: str = "text",
        output_stream: Optional[TextIO] = None,
        enabled: bool = True,
        min_level: LogLevel = LogLevel.DEBUG,
        max_entries: int = DEFAULT_MAX_ENTRIES,
    ):
        """
        Initialize the logger.

        Args:
            output_format: 'json', 'text' or 'both'
            output_stream: Destination stream (defaults to sys.stderr)
            enabled: Whether entries are written to the stream
            min_level: Entries below this level are discarded
            max_entries: Number of recent entries kept in memory
        """
        if output_format not in OUTPUT_FORMATS:
            raise ValueError(f"Invalid output_format: {output_format}")

        self._output_format = output_format
        self._stream = output_stream or sys.stderr
        self._enabled = enabled
        self._threshold = _SEVERITY.index(min_level)
        self._entries: deque[LogEntry] = deque(maxlen=max_entries)

    @property
    def output_format(self) -> str:
        return self._output_format

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def entries(self) -> list[LogEntry]:
        """Entries recorded so far, oldest first."""
        return list(self._entries)

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled

    def clear_entries(self) -> None:
        self._entries.clear()

    def log(
        self,
        level: LogLevel,
        component: str,
        message: str,
        data: Optional[dict] = None,
    ) -> Optional[LogEntry]:
        """
        Record an entry and write it if the logger is enabled.

        Returns:
            The recorded entry, or None if its level is below the threshold
        """
        if _SEVERITY.index(level) < self._threshold:
            return None

        entry = LogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            level=level,
            component=component,
            message=message,
            data=self.mask_sensitive_data(data or {}),
        )
        self._entries.append(entry)
        if self._enabled:
            self._write(entry)
        return entry

    def log_error(
        self,
        component: str,
        message: str,
        error: Optional[Exception] = None,
        request_url: Optional[str] = None,
        response_status_code: Optional[int] = None,
        additional_data: Optional[dict] = None,
    ) -> Optional[LogEntry]:
        """
        Record an ERROR entry carrying the failure context.

        The exception type and message, the request URL and the response
        status are added to the entry data when given.
        """
        data = dict(additional_data or {})
        if error is not None:
            data.update(error_type=type(error).__name__, error_message=str(error))
        context = {"request_url": request_url, "response_status_code": response_status_code}
        data.update({key: value for key, value in context.items() if value is not None})
        return self.log(LogLevel.ERROR, component, message, data)

    def mask_sensitive_data(self, data: dict) -> dict:
        """Return a copy of `data` with credential values replaced by the mask."""
        return {key: self._mask_value(key, value) for key, value in data.items()}

    def _mask_value(self, key: Any, value: Any) -> Any:
        lowered = str(key).lower()
        if any(pattern in lowered for pattern in self.SENSITIVE_KEYS):
            return self.MASK_VALUE
        if isinstance(value, dict):
            return self.mask_sensitive_data(value)
        if isinstance(value, list):
            return [self.mask_sensitive_data(item) if isinstance(item, dict) else item for item in value]
        return value

    def _write(self, entry: LogEntry) -> None:
        lines = []
        if self._output_format != "text":
            lines.append(entry.to_json())
        if self._output_format != "json":
            lines.append(entry.to_text())
        self._stream.write("\n".join(lines) + "\n")
        self._stream.flush()


def create_logger(level: str = "info", output_format: str = "text", enabled: bool = True) -> AppLogger:
    """Build a logger from configuration strings; unknown levels mean INFO."""
    try:
        min_level = LogLevel(level.lower())
    except ValueError:
        min_level = LogLevel.INFO
    return AppLogger(output_format=output_format, enabled=enabled, min_level=min_level)
