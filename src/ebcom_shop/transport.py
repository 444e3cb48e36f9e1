"""
Transport layer for the shop client core.

A transport executes a resolved request and returns the raw body and
status metadata. It never interprets status codes and never retries a
request; any I/O failure is raised as TransportError.
"""

from dataclasses import dataclass, field
from typing import Optional, Protocol, runtime_checkable
import time

import httpx

from .config import NetworkConfig
from .endpoint import ResolvedRequest
from .exceptions import TransportError


@dataclass
class RawResponse:
    """Raw HTTP response produced by a transport."""

    body: bytes
    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    response_time_ms: float = 0.0


@runtime_checkable
class Transport(Protocol):
    """Protocol defining the I/O boundary used by the network client."""

    async def execute(self, request: ResolvedRequest) -> RawResponse:
        """
        Execute a request.

        Args:
            request: The resolved request to send

        Returns:
            The raw response, whatever its status code

        Raises:
            TransportError: If the request could not be completed
        """
        ...


class HttpxTransport:
    """
    Async transport backed by httpx.

    The configured retry count is applied at the connection level by the
    httpx transport (failed connection attempts), never by replaying
    requests that reached the server.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        connection_retries: int = 0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize the transport.

        Args:
            timeout: Request timeout in seconds
            connection_retries: Connection attempts retried by httpx
            client: Optional preconfigured client (tests pass a MockTransport-backed one)
        """
        self._timeout = timeout
        self._connection_retries = connection_retries
        self._client = client
        self._owns_client = client is None

    @classmethod
    def from_config(cls, config: NetworkConfig) -> "HttpxTransport":
        return cls(
            timeout=config.request_timeout,
            connection_retries=config.max_retry_attempts,
        )

    async def __aenter__(self) -> "HttpxTransport":
        """Async context manager entry."""
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                transport=httpx.AsyncHTTPTransport(retries=self._connection_retries),
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client

    async def execute(self, request: ResolvedRequest) -> RawResponse:
        client = self._ensure_client()
        start_time = time.perf_counter()

        try:
            response = await client.request(
                request.method.value,
                request.url,
                headers=request.headers,
                content=request.body,
            )
        except httpx.TimeoutException as e:
            raise TransportError(
                code="timeout",
                message=f"Request timed out after {self._timeout}s",
                details={"url": request.url, "error_type": type(e).__name__},
            )
        except httpx.HTTPError as e:
            raise TransportError(
                code="network_error",
                message=f"Request failed: {e}",
                details={"url": request.url, "error_type": type(e).__name__},
            )

        return RawResponse(
            body=response.content,
            status_code=response.status_code,
            headers=dict(response.headers),
            response_time_ms=(time.perf_counter() - start_time) * 1000,
        )

    async def close(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
