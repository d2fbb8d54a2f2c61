"""
Transport to the remote GraphQL service.

``Transport`` turns a request into a call of the injected ``fetch``
capability, adding the authorization and client version headers. The
default ``fetch`` is ``AiohttpFetch``, which owns an aiohttp session.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional

import aiohttp

from ..config import CloudDataConfig
from .models import QueryRequest

logger = logging.getLogger(__name__)


@dataclass
class FetchResponse:
    """What a ``fetch`` call hands back."""

    status: int
    body: str = ""
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        """
        Decode the body.

        Raises:
            ValueError: If the body is not valid JSON
        """
        return json.loads(self.body)


FetchFunction = Callable[[str, Dict[str, Any]], Awaitable[FetchResponse]]
HeadersProvider = Callable[[], Dict[str, str]]


class AiohttpFetch:
    """
    ``fetch`` implementation backed by an aiohttp session.

    Examples:
        ```python
        async with AiohttpFetch(timeout=10.0) as fetch:
            response = await fetch(url, {"method": "POST", "body": "{}"})
        ```
    """

    def __init__(self, timeout: float = 30.0, user_agent: str = "cloud-data/graphql"):
        self.timeout = timeout
        self.user_agent = user_agent
        self._session: Optional[aiohttp.ClientSession] = None
        self._request_count = 0

    @classmethod
    def from_config(cls, config: CloudDataConfig) -> AiohttpFetch:
        """Build a fetch using the configured timeout and client version."""
        return cls(
            timeout=config.request_timeout,
            user_agent=f"cloud-data/{config.client_version}",
        )

    async def __aenter__(self) -> AiohttpFetch:
        await self._create_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _create_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"User-Agent": self.user_agent},
                raise_for_status=False,  # Handle status codes manually
            )
            logger.debug("HTTP session created")
        return self._session

    async def __call__(self, uri: str, init: Dict[str, Any]) -> FetchResponse:
        session = await self._create_session()
        self._request_count += 1

        async with session.request(
            init.get("method", "POST"),
            uri,
            data=init.get("body"),
            headers=init.get("headers"),
        ) as response:
            body = await response.text()
            return FetchResponse(
                status=response.status,
                body=body,
                headers=dict(response.headers),
            )

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
            logger.debug("HTTP session closed after %d requests", self._request_count)
        self._session = None

    @property
    def closed(self) -> bool:
        return self._session is None or self._session.closed


class Transport:
    """Sends requests through ``fetch`` with the data source's headers applied."""

    def __init__(
        self,
        fetch: FetchFunction,
        endpoint: str,
        additional_headers: Optional[HeadersProvider] = None,
    ):
        """
        Args:
            fetch: Network capability
            endpoint: GraphQL endpoint URL
            additional_headers: Called per request; its headers override the defaults
        """
        self.fetch = fetch
        self.endpoint = endpoint
        self.additional_headers = additional_headers

    def build_init(self, request: QueryRequest) -> Dict[str, Any]:
        """Build the ``init`` argument for ``fetch``."""
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/graphql+json, application/json",
        }
        if self.additional_headers is not None:
            headers.update(self.additional_headers())

        return {
            "method": "POST",
            "headers": headers,
            "body": json.dumps(request.to_dict(), default=str),
        }

    async def send(self, request: QueryRequest) -> FetchResponse:
        init = self.build_init(request)
        logger.debug(
            "Sending %s %s to %s",
            request.operation_type.value,
            request.operation_name or request.field_name or "anonymous",
            self.endpoint,
        )
        return await self.fetch(self.endpoint, init)
