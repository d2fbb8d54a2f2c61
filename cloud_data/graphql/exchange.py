"""
Operation exchange.

Every operation the data source issues passes through ``GraphQLExchange``.
Internal control commands (cache invalidation and inspection) are
intercepted here and routed into the cache store's update hook; they never
reach the transport. Everything else is sent over the transport, and the
response is normalized into an ``OperationResult`` and written through to
the cache store.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..exceptions import ErrorHandler, TransportError
from .cache_store import CacheStore
from .models import (
    CacheCommand,
    CombinedError,
    GraphQLError,
    Operation,
    OperationResult,
    QueryRequest,
)
from .transport import FetchResponse, Transport

logger = logging.getLogger(__name__)


class GraphQLExchange:
    """Executes operations against the cache store or the remote service."""

    def __init__(self, transport: Transport, cache_store: CacheStore):
        self.transport = transport
        self.cache_store = cache_store
        self._metrics = {
            "requests": 0,
            "network_errors": 0,
            "graphql_errors": 0,
            "commands": 0,
        }

    async def execute(self, operation: Operation) -> OperationResult:
        """
        Execute one operation.

        Never raises for transport or GraphQL failures; they are reported in
        the result's ``error``.
        """
        if isinstance(operation, CacheCommand):
            return self._apply_command(operation)

        self._metrics["requests"] += 1
        try:
            response = await self.transport.send(operation)
        except Exception as e:
            network_error = ErrorHandler.handle_transport_error(e, self.transport.endpoint)
            self._metrics["network_errors"] += 1
            logger.warning("GraphQL transport error: %s", network_error)
            return OperationResult(
                operation=operation,
                error=CombinedError(
                    network_error=network_error,
                    response_status=getattr(network_error, "status_code", None),
                ),
            )

        result = self._parse_response(operation, response)
        self._write_through(operation, result)
        return result

    def _apply_command(self, command: CacheCommand) -> OperationResult:
        self._metrics["commands"] += 1
        logger.debug("Applying internal cache command %s", command.name)
        return OperationResult(
            operation=command,
            data=self.cache_store.apply_command(command),
        )

    def _parse_response(
        self, request: QueryRequest, response: FetchResponse
    ) -> OperationResult:
        """Normalize a raw response into data plus a combined error."""
        try:
            payload = response.json()
        except ValueError:
            payload = None

        network_error: Optional[Exception] = None
        if not response.ok:
            network_error = ErrorHandler.handle_http_status_error(
                response.status,
                f"HTTP {response.status}",
                self.transport.endpoint,
                response.headers,
                response.body,
            )

        if not isinstance(payload, dict) or not ("data" in payload or "errors" in payload):
            if network_error is None:
                network_error = TransportError(
                    "Invalid GraphQL response", url=self.transport.endpoint
                )
            self._metrics["network_errors"] += 1
            return OperationResult(
                operation=request,
                error=CombinedError(
                    network_error=network_error, response_status=response.status
                ),
            )

        graphql_errors: List[GraphQLError] = [
            GraphQLError.from_dict(error) for error in payload.get("errors") or []
        ]
        if graphql_errors:
            self._metrics["graphql_errors"] += 1
        if network_error is not None:
            self._metrics["network_errors"] += 1

        error = None
        if graphql_errors or network_error is not None:
            error = CombinedError(
                network_error=network_error,
                graphql_errors=graphql_errors,
                response_status=response.status,
            )

        return OperationResult(
            operation=request,
            data=payload.get("data"),
            error=error,
            extensions=payload.get("extensions"),
        )

    def _write_through(self, request: QueryRequest, result: OperationResult) -> None:
        if result.data is None:
            return
        if result.error is not None and result.error.network_error is not None:
            return
        self.cache_store.write(request, result)

    def get_metrics(self) -> Dict[str, Any]:
        return dict(self._metrics)
