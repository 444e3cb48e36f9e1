"""
Cache repositories for the shop client core.

- HomeRepository: singleton snapshot of the last-known home payload
- SearchHistoryRepository: bounded, most-recent-first list of search terms
- CacheFirstLoader: the online/offline load policy shared by the home feed
  and the search session

The cache is advisory. Reads that fail are reported as "no cached data";
writes surface StorageError and callers treat them as best-effort.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from .app_logger import AppLogger
from .config import DEFAULT_HISTORY_LIMIT
from .connectivity import ConnectivityMonitor
from .decoder import DECODE_EXCEPTIONS
from .enums import LogLevel, NetworkError
from .exceptions import StorageError
from .local_store import LocalStore
from .models import CachedSnapshot, HomeResponse, SearchHistoryEntry
from .result import Result

T = TypeVar("T")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class HomeRepository:
    """Persists the home payload as a single cache row."""

    TABLE = "home_cache"
    SINGLETON_ID = "home"

    def __init__(
        self,
        store: LocalStore,
        logger: Optional[AppLogger] = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._store = store
        self._logger = logger
        self._clock = clock

    def fetch_cached(self) -> Optional[HomeResponse]:
        """
        Read the cached home payload.

        Returns:
            The payload, or None if it was never written or cannot be read
        """
        snapshot = self.fetch_snapshot()
        if snapshot is None:
            return None
        try:
            return HomeResponse.from_dict(snapshot.payload)
        except DECODE_EXCEPTIONS as e:
            self._log_error("Cached home payload is unreadable", e)
            return None

    def fetch_snapshot(self) -> Optional[CachedSnapshot]:
        """Read the raw cache row, or None."""
        try:
            row = self._store.get_row(self.TABLE, self.SINGLETON_ID)
        except StorageError as e:
            self._log_error("Failed to read home cache", e)
            return None
        if row is None:
            return None
        try:
            return CachedSnapshot.from_dict(row)
        except DECODE_EXCEPTIONS as e:
            self._log_error("Home cache row is malformed", e)
            return None

    def save(self, response: HomeResponse) -> None:
        """
        Upsert the cache row and update its timestamp.

        Raises:
            StorageError: If the row cannot be written
        """
        snapshot = CachedSnapshot(
            id=self.SINGLETON_ID,
            payload=response.to_dict(),
            last_updated=self._clock(),
        )
        self._store.upsert_row(self.TABLE, snapshot.to_dict())
        if self._logger:
            self._logger.log(LogLevel.DEBUG, "home_repository", "Home cache updated")

    def _log_error(self, message: str, error: Exception) -> None:
        if self._logger:
            self._logger.log_error("home_repository", message, error=error)


class SearchHistoryRepository:
    """
    Bounded search history.

    Terms are compared case-insensitively. Adding a term that already
    exists moves it to the front with a fresh timestamp; after every
    insertion only the most recent `max_history_count` entries are kept.
    """

    TABLE = "search_history"

    def __init__(
        self,
        store: LocalStore,
        max_history_count: int = DEFAULT_HISTORY_LIMIT,
        logger: Optional[AppLogger] = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._store = store
        self._max_history_count = max_history_count
        self._logger = logger
        self._clock = clock

    @property
    def max_history_count(self) -> int:
        return self._max_history_count

    def fetch_entries(self) -> list[SearchHistoryEntry]:
        """Return history entries, most recent first; unreadable history is empty."""
        try:
            rows = self._store.list_rows(self.TABLE)
        except StorageError as e:
            if self._logger:
                self._logger.log_error("search_history", "Failed to read search history", error=e)
            return []

        entries = []
        for row in rows:
            try:
                entries.append(SearchHistoryEntry.from_dict(row))
            except DECODE_EXCEPTIONS:
                continue
        # Stable sort: rows are stored newest first, so ties keep that order
        return sorted(entries, key=lambda entry: entry.created_at, reverse=True)

    def fetch_terms(self) -> list[str]:
        return [entry.term for entry in self.fetch_entries()]

    def add(self, term: str) -> Optional[SearchHistoryEntry]:
        """
        Record a search term.

        Returns:
            The new entry, or None if the term is blank

        Raises:
            StorageError: If the history cannot be written
        """
        term = term.strip()
        if not term:
            return None

        entry = SearchHistoryEntry(term=term, created_at=self._clock())
        key = term.lower()

        def apply(rows: list[dict]) -> list[dict]:
            kept = [row for row in rows if str(row.get("term", "")).lower() != key]
            return [entry.to_dict()] + kept[: max(self._max_history_count - 1, 0)]

        self._store.update_table(self.TABLE, apply)
        return entry

    def delete(self, *terms: str) -> int:
        """
        Delete one or more terms, matched case-insensitively.

        Returns:
            Number of deleted entries
        """
        keys = {term.strip().lower() for term in terms}
        if not keys:
            return 0
        return self._store.delete_rows(
            self.TABLE,
            lambda row: str(row.get("term", "")).lower() in keys,
        )

    def clear(self) -> None:
        self._store.update_table(self.TABLE, lambda rows: [])


@dataclass
class LoadOutcome(Generic[T]):
    """What a cache-first load surfaced."""

    data: Optional[T] = None
    error: Optional[NetworkError] = None
    from_cache: bool = False


class CacheFirstLoader(Generic[T]):
    """
    Cache-first load policy.

    1. Read the cache and surface it immediately.
    2. When offline, stop; without cached data report NO_INTERNET_CONNECTION.
    3. When online, fetch. Success is saved (best-effort) and replaces the
       surfaced data. Failure is reported only if nothing was cached.
    """

    def __init__(
        self,
        fetch_cached: Callable[[], Optional[T]],
        save: Callable[[T], None],
        fetch_remote: Callable[[], Awaitable[Result[T]]],
        connectivity: ConnectivityMonitor,
        logger: Optional[AppLogger] = None,
    ) -> None:
        self._fetch_cached = fetch_cached
        self._save = save
        self._fetch_remote = fetch_remote
        self._connectivity = connectivity
        self._logger = logger

    async def load(self, on_data: Optional[Callable[[T], None]] = None) -> LoadOutcome[T]:
        """
        Run the load policy.

        Args:
            on_data: Called each time new data is surfaced (cached, then fresh)

        Returns:
            The final surfaced data and error
        """
        cached = self._fetch_cached()
        if cached is not None and on_data is not None:
            on_data(cached)

        if not self._connectivity.is_connected:
            if cached is None:
                return LoadOutcome(error=NetworkError.NO_INTERNET_CONNECTION)
            return LoadOutcome(data=cached, from_cache=True)

        result = await self._fetch_remote()
        if result.is_success:
            fresh = result.value
            try:
                self._save(fresh)
            except StorageError as e:
                if self._logger:
                    self._logger.log_error("cache_loader", "Failed to save fetched data", error=e)
            if on_data is not None:
                on_data(fresh)
            return LoadOutcome(data=fresh)

        if cached is not None:
            if self._logger:
                self._logger.log(
                    LogLevel.WARN,
                    "cache_loader",
                    "Fetch failed, keeping cached data",
                    {"error": result.error.value if result.error else None},
                )
            return LoadOutcome(data=cached, from_cache=True)
        return LoadOutcome(error=result.error)
