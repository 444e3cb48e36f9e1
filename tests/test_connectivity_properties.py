"""
Tests for the connectivity monitor.

Probes run against httpx.MockTransport-backed clients, so no network
access is needed.
"""

import asyncio
import tempfile
from pathlib import Path

import httpx

from ebcom_shop.app_logger import AppLogger
from ebcom_shop.config import AppConfig, StorageConfig
from ebcom_shop.connectivity import ConnectivityMonitor
from ebcom_shop.context import AppContext


PROBE_URL = "https://api.x.com"


def reachable(request: httpx.Request) -> httpx.Response:
    return httpx.Response(503)


def unreachable(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


class TestConnectivityState:
    """The observable value and its updates."""

    def test_defaults_to_connected_before_first_observation(self) -> None:
        monitor = ConnectivityMonitor()

        assert monitor.is_connected is True
        assert monitor.last_checked is None

    def test_set_connected_records_observation(self) -> None:
        logger = AppLogger(enabled=False)
        monitor = ConnectivityMonitor(logger=logger)

        monitor.set_connected(False)

        assert monitor.is_connected is False
        assert monitor.last_checked is not None
        assert any(entry.message == "Connectivity changed" for entry in logger.entries)

    def test_probe_without_url_keeps_current_value(self) -> None:
        monitor = ConnectivityMonitor()
        monitor.set_connected(False)

        assert asyncio.run(monitor.probe_once()) is False


class TestConnectivityProbe:
    """Any HTTP response means connected; transport errors mean offline."""

    def test_any_response_counts_as_connected(self) -> None:
        async def scenario():
            async with httpx.AsyncClient(transport=httpx.MockTransport(reachable)) as client:
                monitor = ConnectivityMonitor(probe_url=PROBE_URL, client=client)
                monitor.set_connected(False)
                return await monitor.probe_once(), monitor.is_connected

        assert asyncio.run(scenario()) == (True, True)

    def test_transport_error_counts_as_disconnected(self) -> None:
        async def scenario():
            async with httpx.AsyncClient(transport=httpx.MockTransport(unreachable)) as client:
                monitor = ConnectivityMonitor(probe_url=PROBE_URL, client=client)
                return await monitor.probe_once(), monitor.is_connected

        assert asyncio.run(scenario()) == (False, False)

    def test_background_loop_probes_until_stopped(self) -> None:
        calls: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.method)
            return httpx.Response(200)

        async def scenario():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                monitor = ConnectivityMonitor(
                    probe_url=PROBE_URL,
                    interval_seconds=0.01,
                    client=client,
                )
                monitor.start()
                monitor.start()
                assert monitor.is_running
                await asyncio.sleep(0.05)
                await monitor.stop()
                stopped_after = len(calls)
                await asyncio.sleep(0.03)
                return monitor, stopped_after

        monitor, stopped_after = asyncio.run(scenario())

        assert stopped_after >= 1
        assert len(calls) == stopped_after
        assert set(calls) == {"HEAD"}
        assert not monitor.is_running
        assert monitor.last_checked is not None


class TestApplicationWiring:
    """The application context observes connectivity while it is open."""

    def test_context_checks_host_on_entry_and_stops_on_exit(self) -> None:
        async def scenario():
            with tempfile.TemporaryDirectory() as tmpdir:
                config = AppConfig(storage=StorageConfig(data_dir=Path(tmpdir)))
                async with httpx.AsyncClient(transport=httpx.MockTransport(unreachable)) as client:
                    monitor = ConnectivityMonitor(probe_url=PROBE_URL, interval_seconds=60, client=client)
                    async with AppContext(config, connectivity=monitor) as context:
                        observed = (context.connectivity.is_connected, monitor.is_running)
                    return observed, monitor.is_running

        observed, running_after_exit = asyncio.run(scenario())

        assert observed == (False, True)
        assert not running_after_exit

    def test_offline_context_never_checks_host(self) -> None:
        calls: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.method)
            return httpx.Response(200)

        async def scenario():
            with tempfile.TemporaryDirectory() as tmpdir:
                config = AppConfig(storage=StorageConfig(data_dir=Path(tmpdir)))
                async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                    monitor = ConnectivityMonitor(probe_url=PROBE_URL, client=client)
                    async with AppContext(config, connectivity=monitor, observe_connectivity=False):
                        return monitor.is_connected, monitor.is_running

        assert asyncio.run(scenario()) == (False, False)
        assert calls == []
