"""
Local Store module for persisted client state.

A small row store backed by one JSON file: named tables, each holding a
list of JSON objects. Writes go through a temporary file and an atomic
rename so a reader never sees a partially written file. When an HMAC
secret is given the file is signed and modifications made outside the
application are rejected on load.
"""

import hashlib
import hmac
import json
import os
import threading
from pathlib import Path
from typing import Callable, Optional

from .app_logger import AppLogger
from .exceptions import StorageError, TamperingError

Row = dict
TableUpdate = Callable[[list[Row]], list[Row]]


class LocalStore:
    """
    JSON-file row store.

    All operations are serialized by a lock; each one reads the file,
    applies its change and writes the file back. Tables are created on
    first write.
    """

    VERSION = 1

    def __init__(
        self,
        file_path: Path,
        hmac_secret: Optional[str] = None,
        logger: Optional[AppLogger] = None,
    ) -> None:
        """
        Initialize the store.

        Args:
            file_path: Path to the store file (JSON format)
            hmac_secret: Optional secret key; enables HMAC protection
            logger: Optional logger for discarded store files
        """
        self._file_path = file_path
        self._hmac_secret = hmac_secret.encode("utf-8") if hmac_secret else None
        self._logger = logger
        self._lock = threading.Lock()

    @property
    def file_path(self) -> Path:
        return self._file_path

    def get_row(self, table: str, row_id: str) -> Optional[Row]:
        """
        Get one row by its "id" field.

        Raises:
            StorageError: If the file cannot be read or fails validation
        """
        with self._lock:
            for row in self._load_tables().get(table, []):
                if row.get("id") == row_id:
                    return dict(row)
        return None

    def list_rows(self, table: str) -> list[Row]:
        """Return all rows of a table in stored order."""
        with self._lock:
            return [dict(row) for row in self._load_tables().get(table, [])]

    def upsert_row(self, table: str, row: Row) -> None:
        """
        Update the row with the same "id" in place, or append it.

        Raises:
            StorageError: If the file cannot be read or written
        """
        def apply(rows: list[Row]) -> list[Row]:
            for index, existing in enumerate(rows):
                if existing.get("id") == row.get("id"):
                    rows[index] = dict(row)
                    return rows
            rows.append(dict(row))
            return rows

        self.update_table(table, apply)

    def delete_rows(self, table: str, predicate: Callable[[Row], bool]) -> int:
        """
        Delete every row matching the predicate.

        Returns:
            Number of deleted rows
        """
        deleted = 0

        def apply(rows: list[Row]) -> list[Row]:
            nonlocal deleted
            kept = [row for row in rows if not predicate(row)]
            deleted = len(rows) - len(kept)
            return kept

        self.update_table(table, apply)
        return deleted

    def update_table(self, table: str, update: TableUpdate) -> None:
        """
        Replace a table with the result of `update(rows)` as one operation.

        A store file that cannot be read or fails validation is discarded
        and rewritten from empty tables.

        Raises:
            StorageError: If the file cannot be written
        """
        with self._lock:
            try:
                tables = self._load_tables()
            except StorageError as e:
                if self._logger:
                    self._logger.log_error(
                        "local_store",
                        "Discarding unreadable store file",
                        error=e,
                        additional_data={"file_path": str(self._file_path), "code": e.code},
                    )
                tables = {}
            tables[table] = update(list(tables.get(table, [])))
            self._save_tables(tables)

    def compute_hmac(self, data: dict) -> str:
        """
        Compute HMAC-SHA256 over serialized data.

        Args:
            data: Dictionary to compute HMAC over

        Returns:
            Hexadecimal HMAC string
        """
        if self._hmac_secret is None:
            raise StorageError(code="no_secret", message="Store has no HMAC secret")
        serialized = json.dumps(data, sort_keys=True, separators=(",", ":"))
        return hmac.new(self._hmac_secret, serialized.encode("utf-8"), hashlib.sha256).hexdigest()

    def _load_tables(self) -> dict[str, list[Row]]:
        if not self._file_path.exists():
            return {}

        try:
            with open(self._file_path, "r", encoding="utf-8") as f:
                raw_data = json.load(f)
        except json.JSONDecodeError as e:
            raise StorageError(
                code="parse_error",
                message=f"Failed to parse store file: {e}",
                details={"file_path": str(self._file_path)},
            )
        except OSError as e:
            raise StorageError(
                code="io_error",
                message=f"Failed to read store file: {e}",
                details={"file_path": str(self._file_path)},
            )

        if not isinstance(raw_data, dict) or not isinstance(raw_data.get("tables", {}), dict):
            raise StorageError(
                code="parse_error",
                message="Store file has an unexpected layout",
                details={"file_path": str(self._file_path)},
            )

        if self._hmac_secret is not None:
            data_for_hmac = {
                "version": raw_data.get("version"),
                "tables": raw_data.get("tables", {}),
            }
            stored_hmac = str(raw_data.get("hmac", ""))
            if not hmac.compare_digest(stored_hmac, self.compute_hmac(data_for_hmac)):
                raise TamperingError(
                    code="hmac_mismatch",
                    message="HMAC validation failed - store may have been tampered with",
                    details={"file_path": str(self._file_path)},
                )

        tables = raw_data.get("tables", {})
        return {
            name: [row for row in rows if isinstance(row, dict)]
            for name, rows in tables.items()
            if isinstance(rows, list)
        }

    def _save_tables(self, tables: dict[str, list[Row]]) -> None:
        output_data: dict = {"version": self.VERSION, "tables": tables}
        if self._hmac_secret is not None:
            output_data["hmac"] = self.compute_hmac(dict(output_data))

        tmp_path = self._file_path.with_name(self._file_path.name + ".tmp")
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(output_data, f, indent=2, sort_keys=True, ensure_ascii=False)
            os.replace(tmp_path, self._file_path)
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(
                code="io_error",
                message=f"Failed to write store file: {e}",
                details={"file_path": str(self._file_path)},
            )
