"""
Token storage for the shop client core.

Provides a key-value storage capability with two interchangeable backends:
- SecureFileStorage: owner-only JSON file protected by an HMAC, so that
  edits made outside the application are detected and ignored
- PreferencesStorage: plain JSON preferences file (or memory), used as a
  fallback and in tests

Backend failures (I/O errors, corrupted files, HMAC mismatches) are logged
and reported as "not found"; they never propagate to callers.
"""

import hashlib
import hmac
import json
import os
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from .app_logger import AppLogger
from .config import StorageConfig
from .decoder import format_iso8601, parse_iso8601
from .enums import LogLevel, StorageType
from .exceptions import StorageError, TamperingError


@runtime_checkable
class LocalStorage(Protocol):
    """Capability interface shared by all storage backends."""

    def store(self, value: str, key: str) -> None:
        ...

    def get(self, key: str) -> Optional[str]:
        ...

    def remove(self, key: str) -> None:
        ...

    def remove_all(self) -> None:
        ...

    def exists(self, key: str) -> bool:
        ...


def _write_json_atomic(path: Path, data: dict, mode: Optional[int] = None) -> None:
    """Write JSON to a temporary file and move it into place."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, sort_keys=True)
    if mode is not None:
        os.chmod(tmp_path, mode)
    os.replace(tmp_path, path)


class SecureFileStorage:
    """
    HMAC-protected credential storage.

    Items are kept in a single JSON file readable only by the owner. The
    HMAC covers the service name and all items; a mismatch on load means
    the file was modified externally and its contents are discarded.
    """

    VERSION = 1
    FILE_MODE = 0o600

    def __init__(
        self,
        file_path: Path,
        hmac_secret: str,
        service: str = "ebcom_shop.auth",
        logger: Optional[AppLogger] = None,
    ) -> None:
        """
        Initialize the secure storage.

        Args:
            file_path: Path to the credentials file (JSON format)
            hmac_secret: Secret key for HMAC computation
            service: Namespace recorded in the file and covered by the HMAC
            logger: Optional logger for backend failures
        """
        self._file_path = file_path
        self._hmac_secret = hmac_secret.encode("utf-8")
        self._service = service
        self._logger = logger
        self._lock = threading.Lock()

    def store(self, value: str, key: str) -> None:
        with self._lock:
            try:
                items = self._load_items()
            except StorageError as e:
                self._log_error(f"Discarding unreadable credentials while storing {key!r}", e)
                items = {}
            items[key] = value
            self._write_items(items, key)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            try:
                return self._load_items().get(key)
            except StorageError as e:
                self._log_error(f"Failed to read credential {key!r}", e)
                return None

    def remove(self, key: str) -> None:
        with self._lock:
            try:
                items = self._load_items()
            except StorageError as e:
                self._log_error(f"Failed to remove credential {key!r}", e)
                return
            if key in items:
                del items[key]
                self._write_items(items, key)

    def remove_all(self) -> None:
        with self._lock:
            try:
                self._file_path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                self._log_error("Failed to clear all credentials", e)

    def exists(self, key: str) -> bool:
        return self.get(key) is not None

    def compute_hmac(self, data: dict) -> str:
        """
        Compute HMAC-SHA256 over serialized data.

        Args:
            data: Dictionary to compute HMAC over

        Returns:
            Hexadecimal HMAC string
        """
        serialized = json.dumps(data, sort_keys=True, separators=(",", ":"))
        return hmac.new(
            self._hmac_secret,
            serialized.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def _load_items(self) -> dict[str, str]:
        """
        Load and validate the credentials file.

        Raises:
            TamperingError: If HMAC validation fails
            StorageError: If the file cannot be read or parsed
        """
        if not self._file_path.exists():
            return {}

        try:
            with open(self._file_path, "r", encoding="utf-8") as f:
                raw_data = json.load(f)
        except json.JSONDecodeError as e:
            raise StorageError(
                code="parse_error",
                message=f"Failed to parse credentials file: {e}",
                details={"file_path": str(self._file_path)},
            )
        except OSError as e:
            raise StorageError(
                code="io_error",
                message=f"Failed to read credentials file: {e}",
                details={"file_path": str(self._file_path)},
            )

        if not isinstance(raw_data, dict):
            raise StorageError(
                code="parse_error",
                message="Credentials file does not contain an object",
                details={"file_path": str(self._file_path)},
            )

        data_for_hmac = {
            "version": raw_data.get("version"),
            "service": raw_data.get("service"),
            "items": raw_data.get("items", {}),
        }
        stored_hmac = raw_data.get("hmac", "")
        if not hmac.compare_digest(str(stored_hmac), self.compute_hmac(data_for_hmac)):
            raise TamperingError(
                code="hmac_mismatch",
                message="HMAC validation failed - credentials may have been tampered with",
                details={"file_path": str(self._file_path)},
            )

        items = raw_data.get("items", {})
        return {str(k): str(v) for k, v in items.items()} if isinstance(items, dict) else {}

    def _write_items(self, items: dict[str, str], key: str) -> None:
        data = {
            "version": self.VERSION,
            "service": self._service,
            "items": items,
        }
        data["hmac"] = self.compute_hmac(data)
        try:
            _write_json_atomic(self._file_path, data, mode=self.FILE_MODE)
        except OSError as e:
            self._log_error(f"Failed to write credential {key!r}", e)

    def _log_error(self, message: str, error: Exception) -> None:
        if self._logger:
            self._logger.log_error("secure_storage", message, error=error)

    @property
    def file_path(self) -> Path:
        return self._file_path


class PreferencesStorage:
    """
    Plain preferences storage.

    Values are stored unprotected in a JSON file, or only in memory when no
    file path is given. `remove_all` removes only keys carrying the
    application prefix.
    """

    def __init__(
        self,
        file_path: Optional[Path] = None,
        prefix: str = "ebcom.",
        logger: Optional[AppLogger] = None,
    ) -> None:
        self._file_path = file_path
        self._prefix = prefix
        self._logger = logger
        self._lock = threading.Lock()
        self._memory: dict[str, str] = {}

    def store(self, value: str, key: str) -> None:
        with self._lock:
            values = self._read()
            values[key] = value
            self._write(values)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read().get(key)

    def remove(self, key: str) -> None:
        with self._lock:
            values = self._read()
            if values.pop(key, None) is not None:
                self._write(values)

    def remove_all(self) -> None:
        with self._lock:
            values = self._read()
            kept = {k: v for k, v in values.items() if not k.startswith(self._prefix)}
            self._write(kept)

    def exists(self, key: str) -> bool:
        return self.get(key) is not None

    def _read(self) -> dict[str, str]:
        if self._file_path is None:
            return dict(self._memory)
        if not self._file_path.exists():
            return {}
        try:
            with open(self._file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            if self._logger:
                self._logger.log_error("preferences", "Failed to read preferences", error=e)
            return {}
        return {str(k): str(v) for k, v in data.items()} if isinstance(data, dict) else {}

    def _write(self, values: dict[str, str]) -> None:
        if self._file_path is None:
            self._memory = dict(values)
            return
        try:
            _write_json_atomic(self._file_path, values)
        except OSError as e:
            if self._logger:
                self._logger.log_error("preferences", "Failed to write preferences", error=e)


def create_storage(
    storage_type: StorageType,
    config: StorageConfig,
    logger: Optional[AppLogger] = None,
) -> LocalStorage:
    """
    Create a storage backend.

    Args:
        storage_type: Which backend to build
        config: Storage configuration (paths and HMAC secret)
        logger: Optional logger passed to the backend

    Returns:
        A LocalStorage implementation
    """
    if storage_type == StorageType.PREFERENCES:
        return PreferencesStorage(file_path=config.preferences_path, logger=logger)
    return SecureFileStorage(
        file_path=config.secure_store_path,
        hmac_secret=config.hmac_secret,
        logger=logger,
    )


class AuthStorageManager:
    """Persists the authentication session through a storage backend."""

    ACCESS_TOKEN_KEY = "ebcom.accessToken"
    REFRESH_TOKEN_KEY = "ebcom.refreshToken"
    EXPIRES_AT_KEY = "ebcom.tokenExpiresAt"
    # Keys written by earlier releases, removed on every session clear
    LEGACY_KEYS = ("lifeforge.accessToken",)

    def __init__(
        self,
        storage: LocalStorage,
        legacy_storage: Optional[LocalStorage] = None,
        logger: Optional[AppLogger] = None,
    ) -> None:
        self._storage = storage
        self._legacy_storage = legacy_storage
        self._logger = logger

    @property
    def storage(self) -> LocalStorage:
        return self._storage

    def get_access_token(self) -> Optional[str]:
        return self._storage.get(self.ACCESS_TOKEN_KEY)

    def get_refresh_token(self) -> Optional[str]:
        return self._storage.get(self.REFRESH_TOKEN_KEY)

    def get_expires_at(self) -> Optional[datetime]:
        raw = self._storage.get(self.EXPIRES_AT_KEY)
        if raw is None:
            return None
        try:
            return parse_iso8601(raw)
        except (TypeError, ValueError):
            return None

    def save_session(
        self,
        access_token: str,
        refresh_token: Optional[str],
        expires_at: Optional[datetime],
    ) -> None:
        """Persist a new session; an absent refresh token keeps the stored one."""
        self._storage.store(access_token, self.ACCESS_TOKEN_KEY)
        if refresh_token is not None:
            self._storage.store(refresh_token, self.REFRESH_TOKEN_KEY)
        if expires_at is not None:
            self._storage.store(format_iso8601(expires_at), self.EXPIRES_AT_KEY)
        else:
            self._storage.remove(self.EXPIRES_AT_KEY)

    def clear_session(self) -> None:
        for key in (self.ACCESS_TOKEN_KEY, self.REFRESH_TOKEN_KEY, self.EXPIRES_AT_KEY):
            self._storage.remove(key)
        if self._legacy_storage is not None:
            for key in self.LEGACY_KEYS:
                self._legacy_storage.remove(key)
        if self._logger:
            self._logger.log(LogLevel.INFO, "auth_storage", "Session cleared successfully")
