"""
Remote API services.

HomeService wraps the one unauthenticated endpoint serving the home
payload. EndpointTokenRefresher exchanges a refresh token for a new token
grant through the same network client.
"""

from typing import Optional

from .app_logger import AppLogger
from .config import NetworkConfig
from .endpoint import Endpoint
from .enums import HTTPMethod, LogLevel
from .exceptions import AuthorizationError
from .models import HomeResponse, TokenGrant
from .network_client import NetworkClient
from .result import Result

HOME_PATH = "/ebcom/shop.json"
REFRESH_PATH = "/auth/refresh"


def home_endpoint(config: NetworkConfig) -> Endpoint:
    """Describe the GET request for the home payload."""
    return Endpoint(
        base_url=config.base_url,
        path=HOME_PATH,
        method=HTTPMethod.GET,
        requires_auth=False,
    )


class HomeService:
    """Fetches the home payload."""

    def __init__(
        self,
        client: NetworkClient,
        config: NetworkConfig,
        logger: Optional[AppLogger] = None,
    ) -> None:
        self._client = client
        self._config = config
        self._logger = logger

    async def fetch_home(self) -> Result[HomeResponse]:
        result = await self._client.request(home_endpoint(self._config), HomeResponse.from_dict)
        if self._logger:
            if result.is_success:
                self._logger.log(LogLevel.INFO, "home_service", "Home payload fetched")
            else:
                self._logger.log(
                    LogLevel.WARN,
                    "home_service",
                    "Home payload fetch failed",
                    {"error": result.error.value if result.error else None},
                )
        return result


class EndpointTokenRefresher:
    """TokenRefresher backed by the refresh endpoint."""

    def __init__(self, client: NetworkClient, config: NetworkConfig) -> None:
        self._client = client
        self._config = config

    async def refresh(self, refresh_token: str) -> TokenGrant:
        """
        Exchange a refresh token for a new grant.

        Raises:
            AuthorizationError: If the endpoint call fails for any reason
        """
        endpoint = Endpoint(
            base_url=self._config.base_url,
            path=REFRESH_PATH,
            method=HTTPMethod.POST,
            body={"refresh_token": refresh_token},
            requires_auth=False,
        )
        result = await self._client.request(endpoint, TokenGrant.from_dict)
        if not result.is_success:
            raise AuthorizationError(
                code="refresh_failed",
                message="Token refresh request failed",
                details={"error": result.error.value if result.error else None},
            )
        return result.unwrap()
