"""
Property-based tests for the Network Client.

Verifies status-code triage, decoding, bearer-token injection and the
unauthorized flow using a stub transport and a counting session manager.
"""

import asyncio
import json
from typing import Any, Optional

from hypothesis import given, settings
from hypothesis import strategies as st

from ebcom_shop.app_logger import AppLogger
from ebcom_shop.endpoint import Endpoint, ResolvedRequest
from ebcom_shop.enums import NetworkError
from ebcom_shop.exceptions import AuthorizationError, TransportError
from ebcom_shop.network_client import NetworkClient
from ebcom_shop.transport import RawResponse


BASE_URL = "https://api.x.com"


class StubTransport:
    """Transport returning a fixed response and recording requests."""

    def __init__(
        self,
        status_code: int = 200,
        body: bytes = b"{}",
        error: Optional[Exception] = None,
    ) -> None:
        self.status_code = status_code
        self.body = body
        self.error = error
        self.requests: list[ResolvedRequest] = []

    async def execute(self, request: ResolvedRequest) -> RawResponse:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return RawResponse(body=self.body, status_code=self.status_code)


class CountingSessionManager:
    """Session manager double counting unauthorized handling."""

    def __init__(self, token: str = "access-123", error: Optional[Exception] = None) -> None:
        self.token = token
        self.error = error
        self.unauthorized_calls = 0
        self.token_requests = 0

    async def get_valid_access_token(self) -> str:
        self.token_requests += 1
        if self.error is not None:
            raise self.error
        return self.token

    def handle_unauthorized(self) -> None:
        self.unauthorized_calls += 1


def parse_value(data: Any) -> int:
    """Parser accepting {"value": int} only."""
    value = data["value"]
    if not isinstance(value, int):
        raise TypeError("value must be an int")
    return value


def run_request(
    transport: StubTransport,
    session_manager: Optional[CountingSessionManager] = None,
    requires_auth: bool = False,
    logger: Optional[AppLogger] = None,
    base_url: str = BASE_URL,
):
    client = NetworkClient(transport, session_manager=session_manager, logger=logger)
    endpoint = Endpoint(base_url=base_url, path="items", requires_auth=requires_auth)
    return asyncio.run(client.request(endpoint, parse_value))


class TestSuccessDecodingProperty:
    """2xx responses succeed exactly when decoding succeeds."""

    @given(
        status=st.integers(min_value=200, max_value=299),
        value=st.integers(min_value=-10**6, max_value=10**6),
    )
    @settings(max_examples=100)
    def test_2xx_with_valid_body_succeeds(self, status: int, value: int) -> None:
        body = json.dumps({"value": value}).encode("utf-8")
        result = run_request(StubTransport(status_code=status, body=body))

        assert result.is_success
        assert result.value == value

    @given(
        status=st.integers(min_value=200, max_value=299),
        body=st.sampled_from([
            b"",
            b"not json",
            b"[]",
            b'{"other": 1}',
            b'{"value": "1"}',
            b'{"value": null}',
        ]),
    )
    @settings(max_examples=100)
    def test_2xx_with_undecodable_body_fails_decoding(self, status: int, body: bytes) -> None:
        result = run_request(StubTransport(status_code=status, body=body))

        assert not result.is_success
        assert result.error == NetworkError.DECODING_FAILED

    def test_decoding_failure_logs_raw_payload(self) -> None:
        logger = AppLogger(enabled=False)
        run_request(StubTransport(body=b"not json"), logger=logger)

        raw_entries = [entry for entry in logger.entries if entry.message == "Raw JSON"]
        assert len(raw_entries) == 1
        assert raw_entries[0].data["raw"] == "not json"

    def test_deeply_nested_body_stays_inside_client(self) -> None:
        depth = 100_000
        result = run_request(StubTransport(body=b"[" * depth + b"]" * depth))

        assert result.error == NetworkError.DECODING_FAILED


class TestStatusTriageProperty:
    """Non-2xx status codes map onto the error taxonomy."""

    @given(status=st.sampled_from([401, 403]))
    @settings(max_examples=20)
    def test_unauthorized_status_triggers_exactly_one_handling(self, status: int) -> None:
        """
        *For any* 401/403 response, request() SHALL return AUTHORIZATION_FAILED
        and call handle_unauthorized exactly once.
        """
        session = CountingSessionManager()
        result = run_request(
            StubTransport(status_code=status, body=b'{"error": "denied"}'),
            session_manager=session,
            requires_auth=True,
        )

        assert result.error == NetworkError.AUTHORIZATION_FAILED
        assert session.unauthorized_calls == 1

    def test_unauthorized_on_public_endpoint_still_clears_session(self) -> None:
        session = CountingSessionManager()
        result = run_request(StubTransport(status_code=401), session_manager=session)

        assert result.error == NetworkError.AUTHORIZATION_FAILED
        assert session.unauthorized_calls == 1
        assert session.token_requests == 0

    def test_server_error_returns_server_error(self) -> None:
        result = run_request(StubTransport(status_code=500, body=b"anything"))
        assert result.error == NetworkError.SERVER_ERROR

    @given(status=st.integers(min_value=500, max_value=599))
    @settings(max_examples=50)
    def test_5xx_maps_to_server_error(self, status: int) -> None:
        result = run_request(StubTransport(status_code=status))
        assert result.error == NetworkError.SERVER_ERROR

    def test_404_maps_to_not_found(self) -> None:
        result = run_request(StubTransport(status_code=404))
        assert result.error == NetworkError.NOT_FOUND

    @given(
        status=st.integers(min_value=100, max_value=499).filter(
            lambda s: not (200 <= s <= 299) and s not in (401, 403, 404)
        ),
    )
    @settings(max_examples=100)
    def test_other_status_maps_to_bad_request(self, status: int) -> None:
        session = CountingSessionManager()
        result = run_request(StubTransport(status_code=status), session_manager=session)

        assert result.error == NetworkError.BAD_REQUEST
        assert session.unauthorized_calls == 0


class TestRequestPipelineProperty:
    """Resolution, token acquisition and transport failures."""

    def test_invalid_base_url_returns_bad_request_without_io(self) -> None:
        transport = StubTransport()
        result = run_request(transport, base_url="not a url")

        assert result.error == NetworkError.BAD_REQUEST
        assert transport.requests == []

    def test_transport_failure_returns_no_data(self) -> None:
        transport = StubTransport(error=TransportError(code="network_error", message="boom"))
        result = run_request(transport)

        assert result.error == NetworkError.NO_DATA

    def test_unexpected_transport_exception_returns_no_data(self) -> None:
        result = run_request(StubTransport(error=RuntimeError("boom")))
        assert result.error == NetworkError.NO_DATA

    def test_authenticated_request_carries_bearer_token(self) -> None:
        transport = StubTransport(body=b'{"value": 1}')
        session = CountingSessionManager(token="abc")
        result = run_request(transport, session_manager=session, requires_auth=True)

        assert result.is_success
        assert transport.requests[0].headers["Authorization"] == "Bearer abc"

    def test_public_request_has_no_authorization_header(self) -> None:
        transport = StubTransport(body=b'{"value": 1}')
        run_request(transport, session_manager=CountingSessionManager(), requires_auth=False)

        assert "Authorization" not in transport.requests[0].headers

    def test_token_failure_returns_authorization_failed_without_io(self) -> None:
        transport = StubTransport()
        session = CountingSessionManager(
            error=AuthorizationError(code="missing_refresh_token", message="none"),
        )
        result = run_request(transport, session_manager=session, requires_auth=True)

        assert result.error == NetworkError.AUTHORIZATION_FAILED
        assert session.unauthorized_calls == 1
        assert transport.requests == []

    def test_authenticated_request_without_session_manager_fails(self) -> None:
        transport = StubTransport()
        result = run_request(transport, requires_auth=True)

        assert result.error == NetworkError.AUTHORIZATION_FAILED
        assert transport.requests == []

    def test_request_logs_url_method_and_status(self) -> None:
        logger = AppLogger(enabled=False)
        run_request(StubTransport(body=b'{"value": 1}'), logger=logger)

        sent = [entry for entry in logger.entries if entry.message == "Sending request"]
        received = [entry for entry in logger.entries if entry.message == "Received response"]
        assert sent[0].data["url"] == f"{BASE_URL}/items"
        assert sent[0].data["method"] == "GET"
        assert sent[0].data["has_body"] is False
        assert received[0].data["status_code"] == 200
