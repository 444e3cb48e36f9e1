"""
ebcom-shop - Networking, caching and session core of a shop directory client.

This package fetches the shop directory's home payload over HTTP, keeps an
offline cache of it, searches shops with a bounded search history, and
manages the authentication session with single-flight token refresh.
"""

__version__ = "0.1.0"
__author__ = "ebcom Shop Team"

from ebcom_shop.exceptions import (
    ShopError,
    ConfigurationError,
    InvalidRequestError,
    InvalidURLError,
    TransportError,
    DecodingError,
    StorageError,
    TamperingError,
    AuthorizationError,
)
from ebcom_shop.enums import (
    HTTPMethod,
    NetworkError,
    LogLevel,
    StorageType,
    HomeSectionType,
)
from ebcom_shop.result import (
    Result,
)
from ebcom_shop.config import (
    NetworkConfig,
    StorageConfig,
    LoggingConfig,
    AppConfig,
    ConfigLoader,
    MappingSource,
    load_network_config,
    load_app_config,
    validate_base_url,
)
from ebcom_shop.app_logger import (
    AppLogger,
    LogEntry,
    create_logger,
)
from ebcom_shop.endpoint import (
    Endpoint,
    ResolvedRequest,
)
from ebcom_shop.transport import (
    Transport,
    RawResponse,
    HttpxTransport,
)
from ebcom_shop.decoder import (
    ResponseDecoder,
)
from ebcom_shop.models import (
    BannerModel,
    CategoryModel,
    ShopAbout,
    ShopModel,
    TagModel,
    LabelModel,
    FAQSectionItem,
    FAQPayload,
    HomeSectionPayload,
    HomePayload,
    HomeResponse,
    HomeSectionItem,
    CachedSnapshot,
    SearchHistoryEntry,
    TokenGrant,
)
from ebcom_shop.token_storage import (
    LocalStorage,
    SecureFileStorage,
    PreferencesStorage,
    AuthStorageManager,
    create_storage,
)
from ebcom_shop.events import (
    SessionEvents,
)
from ebcom_shop.auth_session import (
    AuthSessionManager,
    TokenRefresher,
)
from ebcom_shop.network_client import (
    NetworkClient,
)
from ebcom_shop.connectivity import (
    ConnectivityMonitor,
)
from ebcom_shop.local_store import (
    LocalStore,
)
from ebcom_shop.repositories import (
    HomeRepository,
    SearchHistoryRepository,
    CacheFirstLoader,
    LoadOutcome,
)
from ebcom_shop.services import (
    HomeService,
    EndpointTokenRefresher,
    home_endpoint,
)
from ebcom_shop.feed import (
    HomeFeed,
    map_sections,
)
from ebcom_shop.search import (
    SearchSession,
    matches_shop,
)
from ebcom_shop.context import (
    AppContext,
)
from ebcom_shop.cli import (
    main as cli_main,
    create_parser,
)

__all__ = [
    # Exceptions
    "ShopError",
    "ConfigurationError",
    "InvalidRequestError",
    "InvalidURLError",
    "TransportError",
    "DecodingError",
    "StorageError",
    "TamperingError",
    "AuthorizationError",
    # Enums
    "HTTPMethod",
    "NetworkError",
    "LogLevel",
    "StorageType",
    "HomeSectionType",
    # Result
    "Result",
    # Configuration
    "NetworkConfig",
    "StorageConfig",
    "LoggingConfig",
    "AppConfig",
    "ConfigLoader",
    "MappingSource",
    "load_network_config",
    "load_app_config",
    "validate_base_url",
    # Logging
    "AppLogger",
    "LogEntry",
    "create_logger",
    # Requests
    "Endpoint",
    "ResolvedRequest",
    "Transport",
    "RawResponse",
    "HttpxTransport",
    "ResponseDecoder",
    # Models
    "BannerModel",
    "CategoryModel",
    "ShopAbout",
    "ShopModel",
    "TagModel",
    "LabelModel",
    "FAQSectionItem",
    "FAQPayload",
    "HomeSectionPayload",
    "HomePayload",
    "HomeResponse",
    "HomeSectionItem",
    "CachedSnapshot",
    "SearchHistoryEntry",
    "TokenGrant",
    # Session
    "LocalStorage",
    "SecureFileStorage",
    "PreferencesStorage",
    "AuthStorageManager",
    "create_storage",
    "SessionEvents",
    "AuthSessionManager",
    "TokenRefresher",
    # Client
    "NetworkClient",
    "ConnectivityMonitor",
    # Cache
    "LocalStore",
    "HomeRepository",
    "SearchHistoryRepository",
    "CacheFirstLoader",
    "LoadOutcome",
    # Features
    "HomeService",
    "EndpointTokenRefresher",
    "home_endpoint",
    "HomeFeed",
    "map_sections",
    "SearchSession",
    "matches_shop",
    "AppContext",
    # CLI
    "cli_main",
    "create_parser",
]
