"""
Property-based tests for configuration loading.

Covers base-URL validation, the first-match-wins source chain and the
debug and minimum-timeout adjustments.
"""

import tempfile
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from ebcom_shop.config import (
    DEBUG_MIN_REQUEST_TIMEOUT,
    DEFAULT_BASE_URL,
    DEFAULT_MAX_RETRY_ATTEMPTS,
    DEFAULT_REQUEST_TIMEOUT,
    MIN_REQUEST_TIMEOUT,
    BUILD_CONFIG_KEYS,
    ENVIRONMENT_KEYS,
    MappingSource,
    NetworkConfig,
    build_config_source,
    environment_source,
    is_truncated_scheme,
    load_app_config,
    load_network_config,
    parse_bool,
    validate_base_url,
)
from ebcom_shop.enums import StorageType
from ebcom_shop.exceptions import ConfigurationError


LABEL_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789"


@st.composite
def valid_base_url_strategy(draw) -> str:
    """Generate http(s) URLs with localhost, IPv4 or domain hosts."""
    scheme = draw(st.sampled_from(["http", "https"]))
    kind = draw(st.sampled_from(["localhost", "ipv4", "domain"]))
    if kind == "localhost":
        host = "localhost"
    elif kind == "ipv4":
        host = ".".join(str(draw(st.integers(min_value=0, max_value=255))) for _ in range(4))
    else:
        labels = draw(st.lists(st.text(alphabet=LABEL_ALPHABET, min_size=1, max_size=12), min_size=1, max_size=3))
        host = ".".join(labels + [draw(st.sampled_from(["com", "ir", "io"]))])
    port = draw(st.one_of(st.none(), st.integers(min_value=1, max_value=65535)))
    return f"{scheme}://{host}" + (f":{port}" if port is not None else "")


def sources(env: dict, build: dict) -> list[MappingSource]:
    return [
        MappingSource("environment", env, ENVIRONMENT_KEYS),
        MappingSource("build_config", build, BUILD_CONFIG_KEYS),
    ]


class TestBaseURLValidationProperty:
    """Only http(s) URLs with a parsable host are usable."""

    @given(url=valid_base_url_strategy())
    @settings(max_examples=100)
    def test_valid_urls_are_accepted(self, url: str) -> None:
        assert validate_base_url(url)
        assert validate_base_url(f"  {url}/  ")

    @given(url=valid_base_url_strategy())
    @settings(max_examples=50)
    def test_other_schemes_are_rejected(self, url: str) -> None:
        rest = url.split("://", 1)[1]
        assert not validate_base_url(f"ftp://{rest}")
        assert not validate_base_url(rest)

    @pytest.mark.parametrize("url", ["", "   ", "https://", "http://under_score.com", "https://-bad.com"])
    def test_malformed_urls_are_rejected(self, url: str) -> None:
        assert not validate_base_url(url)

    def test_truncated_scheme_is_detected(self) -> None:
        assert is_truncated_scheme("https:api.x.com")
        assert is_truncated_scheme("http:/api.x.com")
        assert not is_truncated_scheme("https://api.x.com")
        assert not is_truncated_scheme("api.x.com")

    def test_with_base_url_validates(self) -> None:
        config = NetworkConfig()

        assert config.with_base_url(" https://api.x.com ").base_url == "https://api.x.com"
        with pytest.raises(ConfigurationError):
            config.with_base_url("api.x.com")


class TestSourceChainProperty:
    """Environment beats build configuration, which beats defaults."""

    @given(env_url=valid_base_url_strategy(), build_url=valid_base_url_strategy())
    @settings(max_examples=50)
    def test_environment_overrides_build_config(self, env_url: str, build_url: str) -> None:
        config, warnings = load_network_config(sources(
            {"EBCOM_API_BASE_URL": env_url},
            {"NETWORK_BASE_URL": build_url},
        ))

        assert config.base_url == env_url
        assert warnings == []

    def test_invalid_candidate_falls_through_with_warning(self) -> None:
        config, warnings = load_network_config(sources(
            {"EBCOM_API_BASE_URL": "https:api.x.com"},
            {"NETWORK_BASE_URL": "not a url", "API_BASE_URL": "https://fallback.x.com"},
        ))

        assert config.base_url == "https://fallback.x.com"
        assert len(warnings) == 2
        assert "truncated" in warnings[0]

    def test_defaults_apply_without_sources(self) -> None:
        config, warnings = load_network_config(sources({}, {}))

        assert config.base_url == DEFAULT_BASE_URL
        assert config.request_timeout == DEFAULT_REQUEST_TIMEOUT
        assert config.max_retry_attempts == DEFAULT_MAX_RETRY_ATTEMPTS
        assert config.logging_enabled is False
        assert config.environment is None
        assert warnings == []

    def test_numbers_and_flags_are_parsed(self) -> None:
        config, warnings = load_network_config(sources(
            {"EBCOM_REQUEST_TIMEOUT": "abc", "EBCOM_ENABLE_LOGGING": "true"},
            {
                "NETWORK_REQUEST_TIMEOUT": "45",
                "NETWORK_MAX_RETRY_ATTEMPTS": "2",
                "NETWORK_LOGGING_ENABLED": "no",
                "ENVIRONMENT": "staging",
            },
        ))

        assert config.request_timeout == 45.0
        assert config.max_retry_attempts == 2
        assert config.logging_enabled is True
        assert config.environment == "staging"
        assert len(warnings) == 1

    def test_build_config_file_is_read_with_dotenv(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            build_file = Path(tmpdir) / "build.env"
            build_file.write_text(
                "NETWORK_BASE_URL=https://build.x.com\n"
                "NETWORK_LOGGING_ENABLED=yes\n"
                "STORAGE_TYPE=preferences\n",
                encoding="utf-8",
            )

            config = load_app_config(build_file=build_file, environ={}, data_dir=Path(tmpdir))

            assert config.network.base_url == "https://build.x.com"
            assert config.network.logging_enabled is True
            assert config.storage.storage_type == StorageType.PREFERENCES
            assert config.storage.data_dir == Path(tmpdir)

    def test_missing_build_file_is_empty_source(self) -> None:
        source = build_config_source(Path("/nonexistent/build.env"))
        assert source.candidates("base_url") == []

    def test_environment_source_reads_mapping(self) -> None:
        source = environment_source({"EBCOM_API_BASE_URL": " https://env.x.com "})
        assert source.candidates("base_url") == ["https://env.x.com"]


class TestTimeoutAdjustmentProperty:
    """Timeouts respect the minimum and the debug floor."""

    @given(timeout=st.floats(min_value=0.0, max_value=600.0, allow_nan=False))
    @settings(max_examples=100)
    def test_timeout_never_below_minimum(self, timeout: float) -> None:
        config = NetworkConfig().with_request_timeout(timeout)
        assert config.request_timeout == max(timeout, MIN_REQUEST_TIMEOUT)

    @given(timeout=st.integers(min_value=1, max_value=300))
    @settings(max_examples=50)
    def test_debug_forces_logging_and_long_timeout(self, timeout: int) -> None:
        config, _ = load_network_config(
            sources({"EBCOM_REQUEST_TIMEOUT": str(timeout)}, {}),
            debug=True,
        )

        assert config.logging_enabled is True
        assert config.request_timeout == max(float(timeout), DEBUG_MIN_REQUEST_TIMEOUT)

    @pytest.mark.parametrize(
        "raw,expected",
        [("yes", True), ("TRUE", True), ("1", True), ("no", False), ("false", False), ("0", False), ("maybe", None)],
    )
    def test_parse_bool(self, raw: str, expected) -> None:
        assert parse_bool(raw) is expected
