"""
Network Client for the shop client core.

Orchestrates one API call end to end:
endpoint resolution -> auth header -> transport -> status-code triage ->
decoding -> Result. Failures are returned as NetworkError values; no
exception crosses this boundary. A request is attempted exactly once.
"""

from typing import Any, Callable, Optional, TypeVar

from .app_logger import AppLogger
from .auth_session import AuthSessionManager
from .decoder import ResponseDecoder
from .endpoint import Endpoint
from .enums import LogLevel, NetworkError
from .exceptions import InvalidRequestError, TransportError
from .result import Result
from .transport import Transport

T = TypeVar("T")


class NetworkClient:
    """
    Typed HTTP client over an injected transport.

    Endpoints marked as requiring authentication receive a bearer token
    from the AuthSessionManager. Responses with status 401/403 clear the
    session; the caller decides whether to call `request` again once a
    new token is available.
    """

    def __init__(
        self,
        transport: Transport,
        session_manager: Optional[AuthSessionManager] = None,
        decoder: Optional[ResponseDecoder] = None,
        logger: Optional[AppLogger] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            transport: I/O boundary executing resolved requests
            session_manager: Token provider for authenticated endpoints
            decoder: Response decoder (a default one is created if omitted)
            logger: Optional logger
        """
        self._transport = transport
        self._session_manager = session_manager
        self._decoder = decoder or ResponseDecoder(logger=logger)
        self._logger = logger

    async def request(self, endpoint: Endpoint, parser: Callable[[Any], T]) -> Result[T]:
        """
        Perform a request and decode the response body.

        Args:
            endpoint: Description of the call
            parser: Builds the typed value from the decoded JSON body

        Returns:
            Result holding the decoded value or a NetworkError
        """
        # Step 1: resolve the endpoint
        try:
            request = endpoint.resolve(self._logger)
        except InvalidRequestError as e:
            self._log_error("Failed to resolve endpoint", e)
            return Result.failure(NetworkError.BAD_REQUEST)

        # Step 2: attach the bearer token
        if endpoint.requires_auth:
            if self._session_manager is None:
                self._log_error("Endpoint requires authentication but no session manager is configured")
                return Result.failure(NetworkError.AUTHORIZATION_FAILED)
            try:
                access_token = await self._session_manager.get_valid_access_token()
            except Exception as e:
                self._log_error("Failed to get access token", e)
                self._session_manager.handle_unauthorized()
                return Result.failure(NetworkError.AUTHORIZATION_FAILED)
            request = request.with_header("Authorization", f"Bearer {access_token}")

        self._log_info("Sending request", {
            "url": request.url,
            "method": request.method.value,
            "has_body": request.body is not None,
        })

        # Step 3: execute
        try:
            response = await self._transport.execute(request)
        except TransportError as e:
            self._log_error("Transport failure", e, request_url=request.url)
            return Result.failure(NetworkError.NO_DATA)
        except Exception as e:
            self._log_error("Unexpected transport failure", e, request_url=request.url)
            return Result.failure(NetworkError.NO_DATA)

        status = response.status_code
        self._log_info("Received response", {"url": request.url, "status_code": status})

        # Step 4: status-code triage
        if 200 <= status <= 299:
            return self._decoder.decode(response.body, parser)

        if status in (401, 403):
            self._log_error(
                "Authorization failed",
                request_url=request.url,
                status_code=status,
                data={"backend_response": response.body.decode("utf-8", errors="replace")},
            )
            if self._session_manager is not None:
                self._session_manager.handle_unauthorized()
            return Result.failure(NetworkError.AUTHORIZATION_FAILED)

        if status == 404:
            return Result.failure(NetworkError.NOT_FOUND)

        if 500 <= status <= 599:
            return Result.failure(NetworkError.SERVER_ERROR)

        return Result.failure(NetworkError.BAD_REQUEST)

    def _log_info(self, message: str, data: Optional[dict] = None) -> None:
        if self._logger:
            self._logger.log(LogLevel.INFO, "network_client", message, data)

    def _log_error(
        self,
        message: str,
        error: Optional[Exception] = None,
        request_url: Optional[str] = None,
        status_code: Optional[int] = None,
        data: Optional[dict] = None,
    ) -> None:
        if self._logger:
            self._logger.log_error(
                "network_client",
                message,
                error=error,
                request_url=request_url,
                response_status_code=status_code,
                additional_data=data,
            )
