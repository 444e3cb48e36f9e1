"""
Configuration dataclasses for the shop client core.

This module defines the configuration structures used throughout the
system (network, storage, logging) and the ordered chain of sources they
are loaded from: environment variables, then the build configuration
file, then hardcoded defaults. The first source that yields a usable value
for a key wins. Configuration is loaded once and exposed as immutable
values afterwards.
"""

import os
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Mapping, Optional, Protocol
from urllib.parse import urlparse

import idna
from dotenv import dotenv_values

from .enums import StorageType
from .exceptions import ConfigurationError

DEFAULT_BASE_URL = "http://185.204.197.213:5906"
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_MAX_RETRY_ATTEMPTS = 3
MIN_REQUEST_TIMEOUT = 5.0
DEBUG_MIN_REQUEST_TIMEOUT = 60.0
DEFAULT_HISTORY_LIMIT = 10

_IPV4_PATTERN = re.compile(r"^[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}$")
_DOMAIN_PATTERN = re.compile(
    r"^[a-zA-Z0-9]([a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?"
    r"(\.[a-zA-Z0-9]([a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?)*$"
)

# Logical key -> raw key names, per source kind (first name wins within a source)
BUILD_CONFIG_KEYS: dict[str, tuple[str, ...]] = {
    "base_url": ("NETWORK_BASE_URL", "API_BASE_URL"),
    "request_timeout": ("NETWORK_REQUEST_TIMEOUT",),
    "max_retry_attempts": ("NETWORK_MAX_RETRY_ATTEMPTS",),
    "logging_enabled": ("NETWORK_LOGGING_ENABLED",),
    "environment": ("ENVIRONMENT",),
    "data_dir": ("DATA_DIR",),
    "storage_type": ("STORAGE_TYPE",),
    "hmac_secret": ("STORAGE_HMAC_SECRET",),
}

ENVIRONMENT_KEYS: dict[str, tuple[str, ...]] = {
    "base_url": ("EBCOM_API_BASE_URL",),
    "request_timeout": ("EBCOM_REQUEST_TIMEOUT",),
    "max_retry_attempts": ("EBCOM_MAX_RETRY_ATTEMPTS",),
    "logging_enabled": ("EBCOM_ENABLE_LOGGING",),
    "environment": ("EBCOM_ENVIRONMENT",),
    "data_dir": ("EBCOM_DATA_DIR",),
    "storage_type": ("EBCOM_STORAGE_TYPE",),
    "hmac_secret": ("EBCOM_HMAC_SECRET",),
}


def parse_host(url: str) -> Optional[str]:
    """
    Extract and validate the host of an http(s) URL.

    Accepts localhost, dotted IPv4 addresses and LDH domain names.
    Internationalised hosts are converted to their ASCII form first.

    Returns:
        The ASCII host, or None if the URL has no acceptable host
    """
    try:
        host = urlparse(url).hostname
    except ValueError:
        return None
    if not host:
        return None

    if host == "localhost" or _IPV4_PATTERN.match(host):
        return host

    if not host.isascii():
        try:
            host = idna.encode(host, uts46=True).decode("ascii")
        except idna.IDNAError:
            return None

    if _DOMAIN_PATTERN.match(host):
        return host
    return None


def validate_base_url(url: str) -> bool:
    """
    Check that a base URL has an http(s) scheme and a parsable host.

    Args:
        url: Candidate base URL (surrounding whitespace is ignored)

    Returns:
        True if the URL can be used as a base URL
    """
    trimmed = (url or "").strip()
    if not trimmed:
        return False
    if not (trimmed.startswith("http://") or trimmed.startswith("https://")):
        return False
    return parse_host(trimmed) is not None


def is_truncated_scheme(url: str) -> bool:
    """True for URLs like 'https:host' whose scheme lost its slashes."""
    trimmed = (url or "").strip()
    has_scheme_prefix = trimmed.startswith("http:") or trimmed.startswith("https:")
    has_full_scheme = trimmed.startswith("http://") or trimmed.startswith("https://")
    return has_scheme_prefix and not has_full_scheme


def parse_bool(value: str) -> Optional[bool]:
    """Parse yes/true/1 and no/false/0 (case-insensitive); None otherwise."""
    lowered = value.strip().lower()
    if lowered in ("yes", "true", "1"):
        return True
    if lowered in ("no", "false", "0"):
        return False
    return None


@dataclass(frozen=True)
class NetworkConfig:
    """Network configuration consumed by endpoints and the transport."""

    base_url: str = DEFAULT_BASE_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    # Handed to the transport as connection retries; requests are never replayed
    max_retry_attempts: int = DEFAULT_MAX_RETRY_ATTEMPTS
    logging_enabled: bool = False
    environment: Optional[str] = None

    def with_base_url(self, base_url: str) -> "NetworkConfig":
        """Return a copy using a new base URL, which must be valid."""
        if not validate_base_url(base_url):
            raise ConfigurationError(
                code="invalid_base_url",
                message=f"Base URL must use http(s) and have a valid host: {base_url!r}",
                details={"base_url": base_url},
            )
        return replace(self, base_url=base_url.strip())

    def with_request_timeout(self, timeout: float) -> "NetworkConfig":
        """Return a copy with a new timeout (never below the minimum)."""
        return replace(self, request_timeout=max(timeout, MIN_REQUEST_TIMEOUT))

    def with_logging_enabled(self, enabled: bool) -> "NetworkConfig":
        return replace(self, logging_enabled=enabled)


@dataclass(frozen=True)
class StorageConfig:
    """Persistence configuration for tokens and cached data."""

    data_dir: Path = field(default_factory=lambda: Path.home() / ".ebcom_shop")
    storage_type: StorageType = StorageType.SECURE
    hmac_secret: str = "default-secret-change-me"
    history_limit: int = DEFAULT_HISTORY_LIMIT

    @property
    def database_path(self) -> Path:
        return self.data_dir / "cache.json"

    @property
    def secure_store_path(self) -> Path:
        return self.data_dir / "credentials.json"

    @property
    def preferences_path(self) -> Path:
        return self.data_dir / "preferences.json"


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"
    output_format: str = "text"  # 'json', 'text', 'both'


@dataclass(frozen=True)
class AppConfig:
    """Main configuration combining all sub-configurations."""

    network: NetworkConfig = field(default_factory=NetworkConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    debug: bool = False
    # Rejected configuration values, reported once at startup
    warnings: tuple[str, ...] = ()


class ConfigSource(Protocol):
    """A named source of raw configuration strings."""

    name: str

    def candidates(self, key: str) -> list[str]:
        """Return the non-empty raw values this source holds for a logical key."""
        ...


class MappingSource:
    """Configuration source backed by a string mapping."""

    def __init__(
        self,
        name: str,
        values: Mapping[str, Optional[str]],
        keys: dict[str, tuple[str, ...]],
    ) -> None:
        self.name = name
        self._values = values
        self._keys = keys

    def candidates(self, key: str) -> list[str]:
        found = []
        for raw_key in self._keys.get(key, ()):
            value = self._values.get(raw_key)
            if value is not None and value.strip():
                found.append(value.strip())
        return found


def build_config_source(path: Optional[Path]) -> MappingSource:
    """Source reading a dotenv-format build configuration file."""
    values: Mapping[str, Optional[str]] = {}
    if path is not None and path.exists():
        values = dotenv_values(path)
    return MappingSource("build_config", values, BUILD_CONFIG_KEYS)


def environment_source(environ: Optional[Mapping[str, str]] = None) -> MappingSource:
    """Source reading process environment variables."""
    return MappingSource(
        "environment",
        os.environ if environ is None else environ,
        ENVIRONMENT_KEYS,
    )


class ConfigLoader:
    """
    Resolves configuration keys over an ordered list of sources.

    Sources are consulted in order; the first value that parses (and, for
    the base URL, validates) wins. Rejected values are recorded in
    `warnings` so callers can log them.
    """

    def __init__(self, sources: list[ConfigSource]) -> None:
        self._sources = sources
        self.warnings: list[str] = []

    def resolve_base_url(self, default: str = DEFAULT_BASE_URL) -> str:
        for source in self._sources:
            for candidate in source.candidates("base_url"):
                if validate_base_url(candidate):
                    return candidate
                if is_truncated_scheme(candidate):
                    self.warnings.append(f"{source.name}: URL appears truncated: {candidate!r}")
                else:
                    self.warnings.append(f"{source.name}: invalid base URL: {candidate!r}")
        return default

    def resolve_float(self, key: str, default: float) -> float:
        for source in self._sources:
            for candidate in source.candidates(key):
                try:
                    return float(candidate)
                except ValueError:
                    self.warnings.append(f"{source.name}: {key} is not a number: {candidate!r}")
        return default

    def resolve_int(self, key: str, default: int) -> int:
        for source in self._sources:
            for candidate in source.candidates(key):
                try:
                    return int(candidate)
                except ValueError:
                    self.warnings.append(f"{source.name}: {key} is not an integer: {candidate!r}")
        return default

    def resolve_bool(self, key: str, default: bool) -> bool:
        for source in self._sources:
            for candidate in source.candidates(key):
                parsed = parse_bool(candidate)
                if parsed is not None:
                    return parsed
                self.warnings.append(f"{source.name}: {key} is not a boolean: {candidate!r}")
        return default

    def resolve_str(self, key: str, default: Optional[str]) -> Optional[str]:
        for source in self._sources:
            candidates = source.candidates(key)
            if candidates:
                return candidates[0]
        return default


def load_network_config(
    sources: list[ConfigSource],
    debug: bool = False,
) -> tuple[NetworkConfig, list[str]]:
    """
    Load and validate the network configuration.

    Args:
        sources: Ordered configuration sources (highest priority first)
        debug: Debug builds always log and wait at least 60s per request

    Returns:
        Tuple of (NetworkConfig, list of warnings about rejected values)
    """
    loader = ConfigLoader(sources)
    config = NetworkConfig(
        base_url=loader.resolve_base_url(),
        request_timeout=loader.resolve_float("request_timeout", DEFAULT_REQUEST_TIMEOUT),
        max_retry_attempts=max(0, loader.resolve_int("max_retry_attempts", DEFAULT_MAX_RETRY_ATTEMPTS)),
        logging_enabled=loader.resolve_bool("logging_enabled", False),
        environment=loader.resolve_str("environment", None),
    )
    if debug:
        config = replace(
            config,
            logging_enabled=True,
            request_timeout=max(config.request_timeout, DEBUG_MIN_REQUEST_TIMEOUT),
        )
    return config, loader.warnings


def load_app_config(
    build_file: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
    debug: bool = False,
    data_dir: Optional[Path] = None,
) -> AppConfig:
    """
    Build the application configuration once at startup.

    Args:
        build_file: Optional dotenv-format build configuration file
        environ: Environment mapping (defaults to os.environ)
        debug: Apply debug overrides
        data_dir: Explicit data directory, overriding all sources

    Returns:
        Immutable AppConfig
    """
    sources: list[ConfigSource] = [
        environment_source(environ),
        build_config_source(build_file),
    ]
    network, warnings = load_network_config(sources, debug=debug)
    loader = ConfigLoader(sources)

    storage_type_raw = loader.resolve_str("storage_type", StorageType.SECURE.value)
    try:
        storage_type = StorageType((storage_type_raw or "").lower())
    except ValueError:
        storage_type = StorageType.SECURE

    defaults = StorageConfig()
    resolved_dir = loader.resolve_str("data_dir", None)
    storage = StorageConfig(
        data_dir=data_dir or (Path(resolved_dir).expanduser() if resolved_dir else defaults.data_dir),
        storage_type=storage_type,
        hmac_secret=loader.resolve_str("hmac_secret", defaults.hmac_secret) or defaults.hmac_secret,
    )

    return AppConfig(
        network=network,
        storage=storage,
        logging=LoggingConfig(level="debug" if debug else "info"),
        debug=debug,
        warnings=tuple(warnings),
    )
