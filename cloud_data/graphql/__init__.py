"""
GraphQL data access for cloud_data.

This module provides the cache-reconciling data source for the remote
GraphQL service, together with the fingerprinting, request coalescing,
cache store and transport pieces it is built from.
"""

from .cache_store import CacheStore, MemoryCacheStore, serialize_snapshot
from .data_source import CloudDataSource, CloudDataSourceParams
from .exchange import GraphQLExchange
from .fingerprint import document_hash, fingerprint, stringify_variables
from .models import (
    QUERY_ROOT,
    CacheCommand,
    CacheReadResult,
    CombinedError,
    GraphQLError,
    InspectCommand,
    InvalidateCommand,
    InvalidationTarget,
    OperationResult,
    OperationType,
    QueryRequest,
    ReconciledResponse,
    RequestPolicy,
)
from .pending import PendingRequestTable
from .transport import AiohttpFetch, FetchResponse, Transport

__all__ = [
    # Data source
    "CloudDataSource",
    "CloudDataSourceParams",
    # Models
    "QueryRequest",
    "OperationType",
    "RequestPolicy",
    "CacheReadResult",
    "GraphQLError",
    "CombinedError",
    "OperationResult",
    "ReconciledResponse",
    "InvalidationTarget",
    "CacheCommand",
    "InvalidateCommand",
    "InspectCommand",
    "QUERY_ROOT",
    # Building blocks
    "fingerprint",
    "stringify_variables",
    "document_hash",
    "PendingRequestTable",
    "CacheStore",
    "MemoryCacheStore",
    "serialize_snapshot",
    "GraphQLExchange",
    "Transport",
    "AiohttpFetch",
    "FetchResponse",
]
