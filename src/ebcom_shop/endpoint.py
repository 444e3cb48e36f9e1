"""
Endpoint descriptors and their resolution into transport requests.

An Endpoint is a declarative, immutable description of one API call.
Resolving it validates the base URL, joins base URL and path with exactly
one separator, applies the default JSON headers and serializes the body.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Optional

from .app_logger import AppLogger
from .enums import HTTPMethod, LogLevel
from .config import parse_host
from .exceptions import InvalidRequestError, InvalidURLError

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


@dataclass(frozen=True)
class ResolvedRequest:
    """A request ready to be executed by a transport."""

    url: str
    method: HTTPMethod
    headers: dict[str, str]
    body: Optional[bytes] = None

    def with_header(self, name: str, value: str) -> "ResolvedRequest":
        """Return a copy with one header set."""
        headers = dict(self.headers)
        headers[name] = value
        return ResolvedRequest(url=self.url, method=self.method, headers=headers, body=self.body)


@dataclass(frozen=True)
class Endpoint:
    """Declarative description of one HTTP request."""

    base_url: str
    path: str
    method: HTTPMethod = HTTPMethod.GET
    headers: dict[str, str] = field(default_factory=dict)
    body: Optional[dict[str, Any]] = None
    requires_auth: bool = True

    def resolve(self, logger: Optional[AppLogger] = None) -> ResolvedRequest:
        """
        Resolve the descriptor into a ResolvedRequest.

        Args:
            logger: Optional logger for diagnostics

        Returns:
            The resolved request

        Raises:
            InvalidURLError: If the base URL is empty, lacks an http(s)
                scheme, or has no parsable host
            InvalidRequestError: If the body cannot be serialized to JSON
        """
        base = self.base_url.strip()

        if not base:
            raise self._url_error(
                "empty_base_url",
                "Base URL is empty. Check the network configuration",
                logger,
            )

        if not (base.startswith("http://") or base.startswith("https://")):
            raise self._url_error(
                "missing_scheme",
                f"Base URL must start with http:// or https://. Got: {base!r}",
                logger,
            )

        if parse_host(base) is None:
            raise self._url_error(
                "invalid_host",
                f"Base URL is invalid or missing host: {base!r}",
                logger,
            )

        url = base.rstrip("/") + "/" + self.path.lstrip("/")

        body_bytes = None
        if self.body is not None:
            try:
                body_bytes = json.dumps(self.body).encode("utf-8")
            except (TypeError, ValueError) as e:
                raise InvalidRequestError(
                    code="invalid_body",
                    message=f"Request body is not JSON-serializable: {e}",
                    details={"url": url},
                )

        headers = dict(DEFAULT_HEADERS)
        headers.update(self.headers)

        if logger:
            logger.log(LogLevel.DEBUG, "endpoint", "Constructed URL", {"url": url})

        return ResolvedRequest(
            url=url,
            method=self.method,
            headers=headers,
            body=body_bytes,
        )

    def _url_error(
        self,
        code: str,
        message: str,
        logger: Optional[AppLogger],
    ) -> InvalidURLError:
        if logger:
            logger.log(LogLevel.ERROR, "endpoint", message, {"path": self.path})
        return InvalidURLError(
            code=code,
            message=message,
            details={"base_url": self.base_url, "path": self.path},
        )
