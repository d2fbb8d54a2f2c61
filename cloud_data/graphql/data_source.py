"""
Cloud data source.

``CloudDataSource`` answers GraphQL requests for the remote service. It keeps
a normalized cache of everything it has seen so a request can be answered
immediately on first load, coalesces identical in-flight requests, and
refreshes stale data in the background, notifying the caller when the
refreshed data differs from what it was served.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from ..auth import AuthenticatedUser, BearerTokenAuth, UserProvider
from ..config import CloudDataConfig
from ..exceptions import DelegationError
from .cache_store import CacheStore, MemoryCacheStore
from .exchange import GraphQLExchange
from .fingerprint import fingerprint
from .models import (
    QUERY_ROOT,
    CacheReadResult,
    InspectCommand,
    InvalidateCommand,
    InvalidationTarget,
    OperationResult,
    QueryRequest,
    ReconciledResponse,
    RequestPolicy,
)
from .pending import PendingRequestTable
from .transport import FetchFunction, Transport

logger = logging.getLogger(__name__)


@dataclass
class CloudDataSourceParams:
    """
    Collaborators supplied by the host application.

    Attributes:
        fetch: Network capability, ``await fetch(uri, init)``
        get_user: Current session lookup
        logout: Called when the remote service rejects the user's credentials
        invalidate_client_cache: Called when the cache has drifted from the
            server in a way a refresh cannot fix, so the host can drop its own
            higher-level cache
        delegate_to_schema: Schema delegation used by ``delegate_field``
    """

    fetch: FetchFunction
    get_user: UserProvider
    logout: Callable[[], Any]
    invalidate_client_cache: Callable[[], Any]
    delegate_to_schema: Optional[Callable[..., Any]] = None


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class CloudDataSource:
    """
    Reconciles the local cache with the remote GraphQL service.

    Examples:
        ```python
        source = CloudDataSource(
            CloudDataSourceParams(
                fetch=AiohttpFetch.from_config(config),
                get_user=lambda: session.user,
                logout=session.logout,
                invalidate_client_cache=ui.clear_cache,
            )
        )

        response = source.execute_remote_graphql(
            QueryRequest(document=QUERY, variables={"id": 1})
        )
        if not isinstance(response, ReconciledResponse):
            response = await response
        ```
    """

    def __init__(
        self,
        params: CloudDataSourceParams,
        config: Optional[CloudDataConfig] = None,
        pending: Optional[PendingRequestTable] = None,
        cache_store_factory: Callable[[], CacheStore] = MemoryCacheStore,
    ):
        """
        Args:
            params: Host collaborators
            config: Data source configuration
            pending: Pending request table; a private one is created if omitted
            cache_store_factory: Builds the cache store on construction and reset
        """
        self.params = params
        self.config = config or CloudDataConfig()
        self.pending = pending if pending is not None else PendingRequestTable()
        self._cache_store_factory = cache_store_factory
        self._auth = BearerTokenAuth(params.get_user)
        self._divergence_counts: Dict[str, int] = {}
        self._exchange = self.reset()

    @property
    def _user(self) -> Optional[AuthenticatedUser]:
        return self.params.get_user()

    @property
    def cache_store(self) -> CacheStore:
        return self._exchange.cache_store

    def _additional_headers(self) -> Dict[str, str]:
        headers = dict(self._auth.authenticate().headers)
        headers[self.config.version_header] = self.config.client_version
        return headers

    def reset(self) -> GraphQLExchange:
        """Rebuild the exchange with an empty cache store."""
        transport = Transport(
            fetch=self.params.fetch,
            endpoint=self.config.endpoint,
            additional_headers=self._additional_headers,
        )
        self._exchange = GraphQLExchange(transport, self._cache_store_factory())
        self._divergence_counts.clear()
        return self._exchange

    def execute_remote_graphql(
        self, request: QueryRequest
    ) -> Union[ReconciledResponse, asyncio.Future[ReconciledResponse]]:
        """
        Execute a request against the remote schema.

        Returns a ``ReconciledResponse`` directly when it can be answered
        without waiting (no user, or a cache hit), otherwise a future of one.
        Failures are reported in the response, never raised.
        """
        # Unauthenticated requests never reach the remote schema
        if not self._user:
            return ReconciledResponse(data=None)

        if request.is_mutation:
            return asyncio.ensure_future(self._execute_mutation(request))

        eager_result = self.read_from_cache(request)

        if eager_result is not None and request.request_policy != RequestPolicy.NETWORK_ONLY:
            logger.debug(
                "Cache hit for %s (stale=%s)",
                request.operation_name or request.field_name or "anonymous",
                eager_result.stale,
            )

            # Serve what we have and follow up with a refresh
            if eager_result.stale or request.request_policy == RequestPolicy.CACHE_AND_NETWORK:
                return ReconciledResponse(
                    data=eager_result.data,
                    stale=eager_result.stale,
                    executing=self._maybe_queue_deferred_execute(request, eager_result),
                )

            return ReconciledResponse(data=eager_result.data, stale=eager_result.stale)

        return self._maybe_queue_deferred_execute(request)

    def _maybe_queue_deferred_execute(
        self, request: QueryRequest, initial_result: Optional[CacheReadResult] = None
    ) -> asyncio.Future[ReconciledResponse]:
        stable_key = fingerprint(request)
        return self.pending.get_or_create(
            stable_key,
            lambda: self._deferred_execute(request, stable_key, initial_result),
        )

    async def _deferred_execute(
        self,
        request: QueryRequest,
        stable_key: str,
        initial_result: Optional[CacheReadResult],
    ) -> ReconciledResponse:
        result = await self._exchange.execute(request)
        response = await self._format_with_errors(result)

        if initial_result is None:
            return response

        if response.error is not None and response.error.network_error is not None:
            # Nothing was written, so the cache cannot be judged against the server
            logger.warning("Background refresh failed: %s", response.error)
            return response

        # The fresh result has been written through; if the cache still reads
        # stale, it will never resolve by refreshing again.
        eager_result = self.read_from_cache(request)
        if eager_result is not None and eager_result.stale:
            await self._recover_from_divergence(stable_key)
            return response

        self._divergence_counts.pop(stable_key, None)

        if response.data != initial_result.data:
            logger.debug("Different query value %r, %r", response.data, initial_result.data)
            await self._notify_updated_result(request, response.data)

        return response

    async def _recover_from_divergence(self, stable_key: str) -> None:
        attempts = self._divergence_counts.get(stable_key, 0)
        limit = self.config.divergence_recovery_limit
        if attempts >= limit:
            logger.error(
                "Cache still stale for %s after %d recoveries, leaving it as is",
                stable_key[:16],
                attempts,
            )
            return

        self._divergence_counts[stable_key] = attempts + 1
        logger.warning(
            "Cache still stale for %s after refresh, invalidating client caches "
            "(recovery %d of %d)",
            stable_key[:16],
            attempts + 1,
            limit,
        )
        await self.invalidate(QUERY_ROOT)
        try:
            await _maybe_await(self.params.invalidate_client_cache())
        except Exception as e:
            logger.error("Client cache invalidation failed: %s", e)

    async def _notify_updated_result(self, request: QueryRequest, data: Any) -> None:
        if request.on_updated_result is None:
            return
        try:
            await _maybe_await(request.on_updated_result(data))
        except Exception as e:
            logger.error("Updated result callback failed: %s", e, exc_info=True)

    async def _format_with_errors(self, result: OperationResult) -> ReconciledResponse:
        """Apply auth and mutation side effects, then shape the caller's response."""
        error = result.error

        # The remote service no longer accepts this user's credentials
        if error is not None and error.response_status == 401:
            logger.info("Remote service answered 401, logging out")
            try:
                await _maybe_await(self.params.logout())
            except Exception as e:
                logger.error("Logout failed: %s", e)

        if error is not None and result.is_mutation:
            await self.invalidate(QUERY_ROOT)

        return ReconciledResponse(
            data=result.data,
            errors=error.graphql_errors if error is not None else None,
            error=error,
            stale=result.stale,
        )

    async def _execute_mutation(self, request: QueryRequest) -> ReconciledResponse:
        result = await self._exchange.execute(request)
        response = await self._format_with_errors(result)

        # Failed mutations were already handled while formatting
        if result.error is None:
            await self.invalidate(QUERY_ROOT)

        return response

    def is_resolving(self, request: QueryRequest) -> bool:
        """Whether a network fetch for this request is in flight."""
        return self.pending.is_pending(fingerprint(request))

    def has_resolved(self, request: QueryRequest) -> bool:
        """Whether the cache holds any entry for this request, fresh or stale."""
        return self.read_from_cache(request) is not None

    def read_from_cache(self, request: QueryRequest) -> Optional[CacheReadResult]:
        return self.cache_store.read(request)

    async def invalidate(
        self,
        entity: Union[str, Mapping[str, Any]],
        field: Optional[str] = None,
        args: Optional[Mapping[str, Any]] = None,
    ) -> OperationResult:
        """
        Drop cached entries for an entity, a type, or one of their fields.

        ``invalidate("Query")`` clears the whole query root.
        """
        target = InvalidationTarget(entity=entity, field=field, args=args)
        return await self._exchange.execute(InvalidateCommand(target))

    async def inspect(self) -> Dict[str, Any]:
        """Deterministic serialization of the cache store's full contents."""
        result = await self._exchange.execute(InspectCommand())
        return result.data

    def make_operation_name(self, info: Any) -> str:
        """Name a delegated operation after the client operation and field path."""
        name = getattr(getattr(info.operation, "name", None), "value", None) or "Anonymous"
        segments = [
            "idx" if isinstance(segment, int) else str(segment)
            for segment in _path_to_list(info.path)
        ]
        return "_".join([name, *segments])

    def delegate_field(self, field: str, args: Mapping[str, Any], ctx: Any, info: Any) -> Any:
        """
        Resolve one field by delegating it into the stitched remote schema.

        Raises:
            DelegationError: If no schema delegation collaborator was supplied
        """
        if self.params.delegate_to_schema is None:
            raise DelegationError(f"Cannot delegate field {field}: no schema delegation configured")

        return self.params.delegate_to_schema(
            operation="query",
            schema=getattr(ctx, "schema_cloud", None),
            field_name=field,
            field_nodes=getattr(info, "field_nodes", None),
            info=info,
            args=args,
            context=ctx,
            operation_name=self.make_operation_name(info),
        )

    def get_stats(self) -> Dict[str, Any]:
        return {
            "pending": self.pending.get_stats(),
            "exchange": self._exchange.get_metrics(),
            "divergence_recoveries": dict(self._divergence_counts),
        }

    async def close(self) -> None:
        """Close the fetch capability if it holds resources."""
        close = getattr(self.params.fetch, "close", None)
        if close is not None:
            await _maybe_await(close())

    async def __aenter__(self) -> CloudDataSource:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


def _path_to_list(path: Any) -> List[Union[str, int]]:
    """Flatten a resolver path (a list, or a linked ``key``/``prev`` chain)."""
    if path is None:
        return []
    if hasattr(path, "as_list"):
        return list(path.as_list())
    if isinstance(path, (list, tuple)):
        return list(path)

    segments: List[Union[str, int]] = []
    while path is not None:
        segments.append(path.key)
        path = path.prev
    return list(reversed(segments))
