"""
GraphQL models and data structures.

This module defines the request, result and control-command types that flow
between the data source, the exchange and the cache store.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Union


class OperationType(str, Enum):
    """GraphQL operation types handled by the data source."""

    QUERY = "query"
    MUTATION = "mutation"


class RequestPolicy(str, Enum):
    """How a query may be answered from the cache."""

    CACHE_FIRST = "cache-first"
    CACHE_AND_NETWORK = "cache-and-network"
    NETWORK_ONLY = "network-only"


UpdatedResultCallback = Callable[[Any], Any]


@dataclass(frozen=True)
class QueryRequest:
    """
    One logical request against the remote schema.

    Instances are immutable; use ``with_policy`` to derive a variant.
    """

    document: str
    variables: Mapping[str, Any] = field(default_factory=dict, hash=False)
    operation_type: OperationType = OperationType.QUERY
    request_policy: RequestPolicy = RequestPolicy.CACHE_FIRST
    operation_hash: Optional[str] = None
    operation_name: Optional[str] = None
    field_name: Optional[str] = None
    on_updated_result: Optional[UpdatedResultCallback] = field(
        default=None, compare=False, hash=False, repr=False
    )

    def __post_init__(self) -> None:
        """Normalize enums and freeze the variables mapping."""
        object.__setattr__(self, "operation_type", OperationType(self.operation_type))
        object.__setattr__(self, "request_policy", RequestPolicy(self.request_policy))
        object.__setattr__(
            self, "variables", MappingProxyType(dict(self.variables or {}))
        )

    @property
    def is_mutation(self) -> bool:
        return self.operation_type == OperationType.MUTATION

    def with_policy(self, policy: Union[RequestPolicy, str]) -> QueryRequest:
        """Return a copy of this request with a different request policy."""
        return replace(self, request_policy=RequestPolicy(policy))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON body sent to the remote service."""
        result: Dict[str, Any] = {
            "query": self.document,
            "variables": dict(self.variables),
        }

        if self.operation_name:
            result["operationName"] = self.operation_name

        return result


@dataclass
class CacheReadResult:
    """What the cache store returns for a request it has data for."""

    data: Optional[Dict[str, Any]]
    stale: bool = False


@dataclass
class GraphQLError:
    """A single GraphQL-level error reported by the remote service."""

    message: str
    path: Optional[List[Union[str, int]]] = None
    locations: Optional[List[Dict[str, int]]] = None
    extensions: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, payload: Any) -> GraphQLError:
        """Build an error from an entry of a response's ``errors`` list."""
        if not isinstance(payload, Mapping):
            return cls(message=str(payload))
        return cls(
            message=str(payload.get("message", "Unknown error")),
            path=payload.get("path"),
            locations=payload.get("locations"),
            extensions=payload.get("extensions"),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"message": self.message}
        if self.path is not None:
            result["path"] = self.path
        if self.locations is not None:
            result["locations"] = self.locations
        if self.extensions is not None:
            result["extensions"] = self.extensions
        return result


@dataclass
class CombinedError:
    """
    Everything that went wrong with one operation.

    A transport-level failure and GraphQL-level errors can occur together,
    e.g. a 401 answered with an ``errors`` body.
    """

    network_error: Optional[Exception] = None
    graphql_errors: List[GraphQLError] = field(default_factory=list)
    response_status: Optional[int] = None

    @property
    def message(self) -> str:
        messages = []
        if self.network_error is not None:
            messages.append(f"[Network] {self.network_error}")
        messages.extend(f"[GraphQL] {error.message}" for error in self.graphql_errors)
        return "\n".join(messages)

    def __str__(self) -> str:
        return self.message


@dataclass
class InvalidationTarget:
    """
    Selects cache entries to drop.

    ``entity`` is a type name (``"Query"`` for the whole query root), an
    entity key such as ``"User:1"``, or a mapping carrying ``__typename``
    and optionally ``id``/``_id``.
    """

    entity: Union[str, Mapping[str, Any]]
    field: Optional[str] = None
    args: Optional[Mapping[str, Any]] = None

    @property
    def entity_key(self) -> str:
        if isinstance(self.entity, str):
            return self.entity
        typename = self.entity.get("__typename", "")
        key = self.entity.get("id", self.entity.get("_id"))
        if key is None:
            return str(typename)
        return f"{typename}:{key}"

    @property
    def is_query_root(self) -> bool:
        return self.entity_key == QUERY_ROOT


QUERY_ROOT = "Query"


class CacheCommand:
    """Base class for internal control operations that never reach the network."""

    name = "cache_command"


@dataclass
class InvalidateCommand(CacheCommand):
    """Drop cached entries matching ``target``."""

    target: InvalidationTarget
    name = "invalidate"


@dataclass
class InspectCommand(CacheCommand):
    """Serialize the cache store's full contents."""

    name = "inspect"


Operation = Union[QueryRequest, CacheCommand]


@dataclass
class OperationResult:
    """Raw result of one operation through the exchange."""

    operation: Operation
    data: Any = None
    error: Optional[CombinedError] = None
    extensions: Optional[Dict[str, Any]] = None
    stale: bool = False

    @property
    def is_mutation(self) -> bool:
        return isinstance(self.operation, QueryRequest) and self.operation.is_mutation


@dataclass
class ReconciledResponse:
    """
    The value handed back to callers of the data source.

    ``executing`` is set when a background refresh was started; awaiting it
    yields the authoritative response.
    """

    data: Any = None
    errors: Optional[List[GraphQLError]] = None
    error: Optional[CombinedError] = None
    stale: bool = False
    executing: Optional[asyncio.Future[ReconciledResponse]] = field(
        default=None, compare=False, repr=False
    )

    @property
    def has_errors(self) -> bool:
        return self.error is not None

    @property
    def error_messages(self) -> List[str]:
        return [error.message for error in self.errors or []]
