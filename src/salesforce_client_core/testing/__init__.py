"""Testing utilities for code built on the Salesforce client.

Provides a scriptable in-memory transport plus response factories, so client
behaviour can be tested without a network or an org.

Example:
    ```python
    from salesforce_client_core import SalesforceClient
    from salesforce_client_core.testing import StubTransport, create_mock_response

    transport = StubTransport(lambda request: create_mock_response(json={"records": []}))
    client = SalesforceClient(transport)
    assert client.query("SELECT Id FROM Account") == []
    assert transport.requests[0].query_text == "SELECT Id FROM Account"
    ```
"""

import asyncio
import inspect
import threading
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from salesforce_client_core.operations import ResourceRequest

Handler = Callable[[ResourceRequest], "httpx.Response | Awaitable[httpx.Response]"]


def create_mock_response(
    status_code: int = 200,
    *,
    json: Any = None,
    text: str | None = None,
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    """Build an ``httpx.Response`` with a JSON or text body."""
    if json is not None:
        return httpx.Response(status_code, json=json, headers=headers)
    if text is not None:
        return httpx.Response(status_code, text=text, headers=headers)
    return httpx.Response(status_code, headers=headers)


def create_error_response(
    status_code: int,
    error_code: str = "UNKNOWN_EXCEPTION",
    message: str = "An unexpected error occurred",
    fields: list[str] | None = None,
) -> httpx.Response:
    """Build a Salesforce-style error response (a JSON array of errors)."""
    body = [{"message": message, "errorCode": error_code, "fields": fields or []}]
    return httpx.Response(status_code, json=body)


class StubTransport:
    """A transport whose responses come from a handler function.

    The handler receives the ``ResourceRequest`` and returns an
    ``httpx.Response`` (or an awaitable of one), or raises to simulate a
    transport failure. ``delay`` seconds are slept before the handler runs.

    ``completed`` is set once any submitted request has finished (success or
    failure), which lets tests observe work that outlives a blocking call.
    """

    def __init__(self, handler: Handler | None = None, *, delay: float = 0.0) -> None:
        self._handler = handler or (lambda request: create_mock_response())
        self.delay = delay
        self.requests: list[ResourceRequest] = []
        self.completed = threading.Event()

    async def submit(self, request: ResourceRequest) -> httpx.Response:
        self.requests.append(request)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            result = self._handler(request)
            if inspect.isawaitable(result):
                result = await result
            return result
        finally:
            self.completed.set()


__all__ = ["StubTransport", "create_error_response", "create_mock_response"]
