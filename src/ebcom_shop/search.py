"""
Shop search session.

Holds the query, the shops available for searching and the current
results. Query changes schedule a debounced search; a newer query cancels
the pending one, so only the last-issued search executes. Searches with
at least one match are recorded in the search history.
"""

import asyncio
from typing import Optional

from .app_logger import AppLogger
from .connectivity import ConnectivityMonitor
from .enums import LogLevel, NetworkError
from .exceptions import StorageError
from .models import HomeResponse, ShopModel
from .repositories import CacheFirstLoader, HomeRepository, SearchHistoryRepository
from .services import HomeService

DEBOUNCE_SECONDS = 0.3
MIN_QUERY_LENGTH = 3


def matches_shop(shop: ShopModel, term: str) -> bool:
    """Case-insensitive substring match over the title or any tag."""
    needle = term.lower()
    if needle in shop.title.lower():
        return True
    return any(needle in tag.lower() for tag in shop.tags or [])


class SearchSession:
    """Debounced search over the shops of the home payload."""

    def __init__(
        self,
        service: HomeService,
        repository: HomeRepository,
        history: SearchHistoryRepository,
        connectivity: ConnectivityMonitor,
        debounce_seconds: float = DEBOUNCE_SECONDS,
        logger: Optional[AppLogger] = None,
    ) -> None:
        self._history_repository = history
        self._debounce_seconds = debounce_seconds
        self._logger = logger
        self._loader: CacheFirstLoader[HomeResponse] = CacheFirstLoader(
            fetch_cached=repository.fetch_cached,
            save=repository.save,
            fetch_remote=service.fetch_home,
            connectivity=connectivity,
            logger=logger,
        )
        self._search_task: Optional[asyncio.Task] = None

        self.query = ""
        self.all_shops: list[ShopModel] = []
        self.results: list[ShopModel] = []
        self.history: list[str] = history.fetch_terms()
        self.is_loading = False
        self.load_error: Optional[NetworkError] = None
        self.should_show_empty_state = False

    async def load(self) -> None:
        """Load the searchable shops (cached first) and rerun the current query."""
        self.is_loading = True
        self.load_error = None
        try:
            outcome = await self._loader.load(on_data=self._set_shops)
        finally:
            self.is_loading = False

        if outcome.error is not None:
            self.load_error = outcome.error
            self.all_shops = []
            return
        if len(self.query.strip()) >= MIN_QUERY_LENGTH:
            self._perform_search(self.query.strip())

    def on_query_changed(self, value: str) -> None:
        """
        Update the query and schedule a debounced search.

        Must be called from a running event loop.
        """
        self.query = value
        self._cancel_pending()
        trimmed = value.strip()

        if len(trimmed) < MIN_QUERY_LENGTH:
            self.results = []
            self.should_show_empty_state = False
            return

        self._search_task = asyncio.get_running_loop().create_task(self._debounced_search(trimmed))

    async def wait_for_pending_search(self) -> None:
        """Wait until the scheduled search, if any, has run or been cancelled."""
        task = self._search_task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass

    def search_now(self, term: str) -> list[ShopModel]:
        """Set the query and search immediately, without debouncing."""
        self._cancel_pending()
        self.query = term
        self._perform_search(term.strip())
        return self.results

    def clear_query(self) -> None:
        self.query = ""
        self.results = []
        self.should_show_empty_state = False
        self._cancel_pending()

    def apply_history(self, term: str) -> None:
        self.on_query_changed(term)

    def delete_history(self, *terms: str) -> None:
        try:
            self._history_repository.delete(*terms)
        except StorageError as e:
            self._log_error("Failed to delete search history", e)
        self.history = self._history_repository.fetch_terms()

    def _set_shops(self, response: HomeResponse) -> None:
        self.all_shops = list(response.shops)

    async def _debounced_search(self, term: str) -> None:
        await asyncio.sleep(self._debounce_seconds)
        self._perform_search(term)

    def _perform_search(self, term: str) -> None:
        # A search scheduled for an outdated query is dropped
        if self.query.strip() != term:
            return
        if len(term) < MIN_QUERY_LENGTH:
            self.results = []
            self.should_show_empty_state = False
            return

        matches = [shop for shop in self.all_shops if matches_shop(shop, term)]
        self.results = matches
        self.should_show_empty_state = not matches

        if self._logger:
            self._logger.log(
                LogLevel.DEBUG,
                "search",
                "Search finished",
                {"term": term, "matches": len(matches)},
            )

        if matches:
            self._record_history(term)

    def _record_history(self, term: str) -> None:
        try:
            self._history_repository.add(term)
        except StorageError as e:
            self._log_error("Failed to record search history", e)
        self.history = self._history_repository.fetch_terms()

    def _cancel_pending(self) -> None:
        if self._search_task is not None and not self._search_task.done():
            self._search_task.cancel()
        self._search_task = None

    def _log_error(self, message: str, error: Exception) -> None:
        if self._logger:
            self._logger.log_error("search", message, error=error)
