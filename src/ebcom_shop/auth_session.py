"""
Auth Session Manager for the shop client core.

Owns the access/refresh token lifecycle:
- Serves the stored access token while it is not expired
- Refreshes it through a TokenRefresher, with at most one refresh in
  flight; concurrent callers await the same refresh and observe the same
  outcome
- Clears the session and broadcasts session-expired when authentication
  is lost
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Protocol, runtime_checkable

from .app_logger import AppLogger
from .enums import LogLevel
from .events import SessionEvents
from .exceptions import AuthorizationError
from .models import TokenGrant
from .token_storage import AuthStorageManager

# Tokens are treated as expired this long before the server says they are
EXPIRY_SAFETY_BUFFER_SECONDS = 300.0


@runtime_checkable
class TokenRefresher(Protocol):
    """Exchanges a refresh token for a new token grant."""

    async def refresh(self, refresh_token: str) -> TokenGrant:
        """
        Refresh the session.

        Raises:
            Exception: Any failure; the manager treats it as lost authentication
        """
        ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _retrieve_refresh_outcome(task: asyncio.Future) -> None:
    # Marks a failure as retrieved when every waiter was cancelled
    if not task.cancelled():
        task.exception()


class AuthSessionManager:
    """
    Token lifecycle manager with single-flight refresh.

    One instance is shared by every request path of the process. The
    in-flight refresh is guarded by an asyncio.Lock; the refresh itself
    runs as a task whose handle is shared by all callers and cleared
    before the task finishes, whatever the outcome.
    """

    def __init__(
        self,
        storage: AuthStorageManager,
        refresher: Optional[TokenRefresher] = None,
        events: Optional[SessionEvents] = None,
        logger: Optional[AppLogger] = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """
        Initialize the manager.

        Args:
            storage: Persisted session state
            refresher: Token refresh service; without one every refresh fails
            events: Broadcaster for the session-expired signal
            logger: Optional logger
            clock: Source of the current UTC time
        """
        self._storage = storage
        self._refresher = refresher
        self._events = events
        self._logger = logger
        self._clock = clock
        self._lock = asyncio.Lock()
        self._refresh_task: Optional[asyncio.Task] = None

    def set_refresher(self, refresher: TokenRefresher) -> None:
        """Attach the refresher once the client it depends on exists."""
        self._refresher = refresher

    @property
    def is_refreshing(self) -> bool:
        return self._refresh_task is not None

    async def get_valid_access_token(self) -> str:
        """
        Return a usable access token, refreshing it if needed.

        Raises:
            AuthorizationError: If no token is stored and no refresh token is available
            Exception: Whatever the refresher raised, after the session was cleared
        """
        token = self._storage.get_access_token()
        if token and not self._is_expired():
            return token
        return await self.refresh_access_token()

    async def refresh_access_token(self) -> str:
        """
        Refresh the access token, joining a refresh already in flight.

        Returns:
            The new access token
        """
        async with self._lock:
            task = self._refresh_task
            if task is None:
                task = asyncio.ensure_future(self._perform_refresh())
                task.add_done_callback(_retrieve_refresh_outcome)
                self._refresh_task = task
        # Shielded so that a cancelled caller does not cancel the shared refresh
        return await asyncio.shield(task)

    def store_session(self, grant: TokenGrant) -> None:
        """Persist a grant, e.g. after login or refresh."""
        expires_at = self._clock() + timedelta(
            seconds=grant.expires_in - EXPIRY_SAFETY_BUFFER_SECONDS
        )
        self._storage.save_session(
            access_token=grant.access_token,
            refresh_token=grant.refresh_token,
            expires_at=expires_at,
        )

    def handle_unauthorized(self) -> None:
        """
        Clear the session and broadcast session-expired.

        Safe to call repeatedly: clearing an empty session is a no-op and
        duplicate broadcasts are harmless to listeners.
        """
        self._log(LogLevel.WARN, "Handling unauthorized response - clearing session")
        self._storage.clear_session()
        if self._events is not None:
            self._events.post_session_expired()

    async def _perform_refresh(self) -> str:
        try:
            refresh_token = self._storage.get_refresh_token()
            if not refresh_token or self._refresher is None:
                self.handle_unauthorized()
                raise AuthorizationError(
                    code="missing_refresh_token",
                    message="No refresh token available",
                )

            try:
                grant = await self._refresher.refresh(refresh_token)
            except Exception as e:
                if self._logger:
                    self._logger.log_error("auth_session", "Token refresh failed", error=e)
                self.handle_unauthorized()
                raise

            self.store_session(grant)
            self._log(LogLevel.INFO, "Access token refreshed")
            return grant.access_token
        finally:
            self._refresh_task = None

    def _is_expired(self) -> bool:
        expires_at = self._storage.get_expires_at()
        return expires_at is not None and expires_at <= self._clock()

    def _log(self, level: LogLevel, message: str) -> None:
        if self._logger:
            self._logger.log(level, "auth_session", message)
