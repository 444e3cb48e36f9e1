"""
Connectivity monitor for the shop client core.

Exposes a single observable boolean, `is_connected`, which defaults to
True until the first observation arrives. Observations come either from a
platform callback (`set_connected`) or from a background probe loop that
periodically contacts the API host with httpx.

The value has a single writer and many readers; consumers read it at a
point in time and no subscription contract is offered.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Optional

import httpx

from .app_logger import AppLogger
from .enums import LogLevel

DEFAULT_PROBE_INTERVAL_SECONDS = 30.0
DEFAULT_PROBE_TIMEOUT_SECONDS = 5.0


class ConnectivityMonitor:
    """
    Reachability tracker.

    Any HTTP response from the probe URL, whatever its status code, counts
    as connected; a transport-level failure counts as disconnected.
    """

    def __init__(
        self,
        probe_url: Optional[str] = None,
        interval_seconds: float = DEFAULT_PROBE_INTERVAL_SECONDS,
        timeout_seconds: float = DEFAULT_PROBE_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
        logger: Optional[AppLogger] = None,
    ) -> None:
        """
        Initialize the monitor.

        Args:
            probe_url: URL contacted by `probe_once`; without one only
                       `set_connected` updates the state
            interval_seconds: Delay between probes of the background loop
            timeout_seconds: Timeout of a single probe
            client: Optional httpx client to probe with
            logger: Optional logger
        """
        self._probe_url = probe_url
        self._interval_seconds = interval_seconds
        self._timeout_seconds = timeout_seconds
        self._client = client
        self._logger = logger
        self._is_connected = True
        self._last_checked: Optional[datetime] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_connected(self) -> bool:
        return self._is_connected

    @property
    def last_checked(self) -> Optional[datetime]:
        """Time of the last observation, or None before the first one."""
        return self._last_checked

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def set_connected(self, connected: bool) -> None:
        """Record an observation."""
        if connected != self._is_connected and self._logger:
            self._logger.log(
                LogLevel.INFO,
                "connectivity",
                "Connectivity changed",
                {"is_connected": connected},
            )
        self._is_connected = connected
        self._last_checked = datetime.now(timezone.utc)

    async def probe_once(self) -> bool:
        """
        Contact the probe URL once and record the outcome.

        Returns:
            The recorded connectivity value
        """
        if self._probe_url is None:
            return self._is_connected

        start_time = time.perf_counter()
        try:
            if self._client is not None:
                await self._client.head(self._probe_url, timeout=self._timeout_seconds)
            else:
                async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
                    await client.head(self._probe_url)
            connected = True
        except httpx.HTTPError as e:
            if self._logger:
                self._logger.log(
                    LogLevel.DEBUG,
                    "connectivity",
                    "Probe failed",
                    {"url": self._probe_url, "error": str(e)},
                )
            connected = False

        if self._logger:
            self._logger.log(
                LogLevel.DEBUG,
                "connectivity",
                "Probe finished",
                {
                    "url": self._probe_url,
                    "is_connected": connected,
                    "response_time_ms": (time.perf_counter() - start_time) * 1000,
                },
            )
        self.set_connected(connected)
        return connected

    def start(self) -> None:
        """
        Start the background probe loop on the running event loop.

        Calling start while the loop is already running is a no-op.
        """
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        """Stop the background probe loop and wait for it to finish."""
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            await self.probe_once()
            await asyncio.sleep(self._interval_seconds)
