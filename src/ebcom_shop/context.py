"""
Application context.

Constructs every service once from an AppConfig and injects the shared
instances (logger, session manager, network client, stores) through
constructors. Used as an async context manager so the HTTP client and the
connectivity probe are released on exit.
"""

from typing import Optional

from .app_logger import AppLogger, create_logger
from .auth_session import AuthSessionManager
from .config import AppConfig
from .connectivity import ConnectivityMonitor
from .enums import LogLevel, StorageType
from .events import SessionEvents
from .feed import HomeFeed
from .local_store import LocalStore
from .network_client import NetworkClient
from .repositories import HomeRepository, SearchHistoryRepository
from .search import SearchSession
from .services import EndpointTokenRefresher, HomeService
from .token_storage import AuthStorageManager, PreferencesStorage, create_storage
from .transport import HttpxTransport, Transport


class AppContext:
    """Dependency container for one running client."""

    async def __aenter__(self) -> "AppContext":
        """Async context manager entry; observes connectivity unless offline."""
        if self._observe_connectivity:
            await self.connectivity.probe_once()
            self.connectivity.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    def __init__(
        self,
        config: AppConfig,
        transport: Optional[Transport] = None,
        connectivity: Optional[ConnectivityMonitor] = None,
        logger: Optional[AppLogger] = None,
        observe_connectivity: bool = True,
    ) -> None:
        """
        Wire the services.

        Args:
            config: Application configuration
            transport: Transport override (defaults to httpx)
            connectivity: Connectivity monitor override
            logger: Logger override (defaults to one built from config)
            observe_connectivity: Probe the API host on entry and keep
                probing in the background; when False the network is
                treated as unreachable
        """
        self.config = config
        self._observe_connectivity = observe_connectivity
        self.logger = logger or create_logger(
            level=config.logging.level,
            output_format=config.logging.output_format,
            enabled=config.network.logging_enabled,
        )
        for warning in config.warnings:
            self.logger.log(LogLevel.WARN, "config", warning)

        self.events = SessionEvents(logger=self.logger)

        storage_config = config.storage
        legacy_storage = None
        if storage_config.storage_type == StorageType.SECURE:
            legacy_storage = PreferencesStorage(
                file_path=storage_config.preferences_path,
                logger=self.logger,
            )
        self.auth_storage = AuthStorageManager(
            storage=create_storage(storage_config.storage_type, storage_config, self.logger),
            legacy_storage=legacy_storage,
            logger=self.logger,
        )
        self.session_manager = AuthSessionManager(
            storage=self.auth_storage,
            events=self.events,
            logger=self.logger,
        )

        self._owned_transport: Optional[HttpxTransport] = None
        if transport is None:
            self._owned_transport = HttpxTransport.from_config(config.network)
            transport = self._owned_transport
        self.client = NetworkClient(
            transport=transport,
            session_manager=self.session_manager,
            logger=self.logger,
        )
        self.session_manager.set_refresher(EndpointTokenRefresher(self.client, config.network))

        self.connectivity = connectivity or ConnectivityMonitor(
            probe_url=config.network.base_url,
            logger=self.logger,
        )
        if not observe_connectivity:
            self.connectivity.set_connected(False)

        self.store = LocalStore(
            file_path=storage_config.database_path,
            hmac_secret=storage_config.hmac_secret,
            logger=self.logger,
        )
        self.home_repository = HomeRepository(self.store, logger=self.logger)
        self.history_repository = SearchHistoryRepository(
            self.store,
            max_history_count=storage_config.history_limit,
            logger=self.logger,
        )
        self.home_service = HomeService(self.client, config.network, logger=self.logger)

    def home_feed(self) -> HomeFeed:
        return HomeFeed(
            service=self.home_service,
            repository=self.home_repository,
            connectivity=self.connectivity,
            logger=self.logger,
        )

    def search_session(self, debounce_seconds: Optional[float] = None) -> SearchSession:
        kwargs = {} if debounce_seconds is None else {"debounce_seconds": debounce_seconds}
        return SearchSession(
            service=self.home_service,
            repository=self.home_repository,
            history=self.history_repository,
            connectivity=self.connectivity,
            logger=self.logger,
            **kwargs,
        )

    async def close(self) -> None:
        await self.connectivity.stop()
        if self._owned_transport is not None:
            await self._owned_transport.close()
