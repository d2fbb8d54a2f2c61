"""
Client-side data access for a remote GraphQL service.

This package answers GraphQL requests from a local normalized cache when it
can, coalesces identical in-flight requests into one network call, and
refreshes stale cached data in the background without blocking the caller.

Features:
- Cache-first, cache-and-network and network-only request policies
- Stale-while-revalidate with change notification
- Request coalescing keyed by a stable request fingerprint
- Cache invalidation through internal control commands
- Detection of and recovery from cache/server divergence
"""

from .auth import AuthenticatedUser, BearerTokenAuth
from .config import CloudDataConfig, CloudEnvironment, ConfigLoader, LoggingConfig, load_config
from .exceptions import (
    AuthenticationError,
    CacheStoreError,
    CloudDataError,
    ConfigurationError,
    DelegationError,
    HTTPError,
    RequestTimeoutError,
    ServerError,
    TransportError,
)
from .graphql import (
    AiohttpFetch,
    CacheReadResult,
    CacheStore,
    CloudDataSource,
    CloudDataSourceParams,
    CombinedError,
    FetchResponse,
    GraphQLError,
    MemoryCacheStore,
    OperationType,
    PendingRequestTable,
    QueryRequest,
    ReconciledResponse,
    RequestPolicy,
    fingerprint,
)
from .logging import setup_logging
from .version import __version__

__all__ = [
    "__version__",
    # Data source
    "CloudDataSource",
    "CloudDataSourceParams",
    "QueryRequest",
    "OperationType",
    "RequestPolicy",
    "ReconciledResponse",
    "CacheReadResult",
    "GraphQLError",
    "CombinedError",
    "fingerprint",
    "PendingRequestTable",
    "CacheStore",
    "MemoryCacheStore",
    "AiohttpFetch",
    "FetchResponse",
    # Auth
    "AuthenticatedUser",
    "BearerTokenAuth",
    # Configuration
    "CloudDataConfig",
    "CloudEnvironment",
    "LoggingConfig",
    "ConfigLoader",
    "load_config",
    "setup_logging",
    # Exceptions
    "CloudDataError",
    "ConfigurationError",
    "TransportError",
    "RequestTimeoutError",
    "HTTPError",
    "AuthenticationError",
    "ServerError",
    "CacheStoreError",
    "DelegationError",
]
