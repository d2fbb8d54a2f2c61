"""
Helpers shared by the cloud_data tests.
"""

import asyncio
import json
from collections import deque
from typing import Any, Deque, Dict, List, Optional, Tuple, Union

from cloud_data import FetchResponse

USER_QUERY = """
query User($id: ID!) {
  user(id: $id) {
    __typename
    id
    name
  }
}
"""

UPDATE_WIDGET = """
mutation UpdateWidget($id: ID!, $name: String!) {
  updateWidget(id: $id, name: $name) {
    __typename
    id
    name
  }
}
"""


def graphql_response(
    data: Any = None,
    errors: Optional[List[Dict[str, Any]]] = None,
    status: int = 200,
) -> FetchResponse:
    """Build a fetch response carrying a GraphQL payload."""
    payload: Dict[str, Any] = {"data": data}
    if errors is not None:
        payload["errors"] = errors
    return FetchResponse(status=status, body=json.dumps(payload))


def user_data(name: str, user_id: str = "1") -> Dict[str, Any]:
    return {"user": {"__typename": "User", "id": user_id, "name": name}}


class RecordingFetch:
    """
    Stand-in for the network capability.

    Responses are served in the order they were queued; when the queue is
    empty the default response is used. Setting ``gate`` holds every call
    until the event is set.
    """

    def __init__(self, default: Optional[FetchResponse] = None) -> None:
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.responses: Deque[Union[FetchResponse, Exception]] = deque()
        self.default = default or graphql_response(user_data("Ada"))
        self.gate: Optional[asyncio.Event] = None

    def queue(self, *responses: Union[FetchResponse, Exception]) -> None:
        self.responses.extend(responses)

    async def __call__(self, uri: str, init: Dict[str, Any]) -> FetchResponse:
        self.calls.append((uri, init))
        if self.gate is not None:
            await self.gate.wait()

        response = self.responses.popleft() if self.responses else self.default
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def bodies(self) -> List[Dict[str, Any]]:
        return [json.loads(init["body"]) for _, init in self.calls]
