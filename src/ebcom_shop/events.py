"""
Process-wide session events.

The session-expired signal carries no payload. Posting it is
fire-and-forget: subscribers are called later on the event loop that
owns the application (the main execution context), never inline.
"""

import asyncio
from typing import Callable, Optional

from .app_logger import AppLogger

SessionListener = Callable[[], None]


class SessionEvents:
    """Broadcasts session-expired notifications to registered listeners."""

    def __init__(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        logger: Optional[AppLogger] = None,
    ) -> None:
        """
        Initialize the broadcaster.

        Args:
            loop: Loop on which listeners run; defaults to the loop that is
                  running when a signal is posted
            logger: Optional logger for failing listeners
        """
        self._loop = loop
        self._logger = logger
        self._listeners: list[SessionListener] = []
        self._posted_count = 0

    def subscribe(self, listener: SessionListener) -> None:
        """Register a listener; registering the same listener twice is a no-op."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: SessionListener) -> bool:
        if listener in self._listeners:
            self._listeners.remove(listener)
            return True
        return False

    @property
    def posted_count(self) -> int:
        """Number of session-expired signals posted so far."""
        return self._posted_count

    def post_session_expired(self) -> None:
        """Schedule delivery of the session-expired signal to all listeners."""
        self._posted_count += 1
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None

        if loop is None or loop.is_closed():
            self._deliver()
            return

        loop.call_soon_threadsafe(self._deliver)

    def _deliver(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception as e:
                # One failing listener must not prevent delivery to the others
                if self._logger:
                    self._logger.log_error("session_events", "Session listener failed", error=e)
