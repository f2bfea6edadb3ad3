"""Typed Salesforce client with blocking and async forms of every operation."""

from collections.abc import Awaitable, Callable
from datetime import datetime

import httpx

from salesforce_client_core.auth.session import SessionCredential
from salesforce_client_core.config import ClientSettings
from salesforce_client_core.documents import Document
from salesforce_client_core.execution import ResourceExecutor
from salesforce_client_core.models import ResourceRecord, SearchResult
from salesforce_client_core.operations import ChangeType, ResourceRequest
from salesforce_client_core.transport.httpx_transport import HttpxTransport


class SalesforceClient:
    """CRUD, query, search, describe and change-feed operations on sObjects.

    Each operation comes in two shapes. ``foo_async`` is a coroutine for use
    inside an event loop. ``foo`` blocks the calling thread for at most
    ``settings.network_timeout`` seconds and returns a "no result" value on
    timeout without cancelling the request (see
    :mod:`salesforce_client_core.execution`).

    Blocking calls run on a private background loop. A transport built on an
    ``httpx.AsyncClient`` binds its connections to the first loop that uses
    it, so stick to one shape per client instance. Release a client used
    with blocking calls through ``close()`` and one used with coroutines
    through ``await aclose()``.

    Args:
        transport: Object with an async ``submit(request)`` method, or the
            submit callable itself.
        settings: Immutable client settings. Defaults to ``ClientSettings()``.
        owns_transport: Close the transport together with the client. Set for
            transports the client built itself.

    Example:
        ```python
        client = SalesforceClient.from_credential(credential)

        account = ResourceRecord("Account", fields={"Name": "Acme"})
        client.create(account)  # also sets account.id
        rows = client.query("SELECT Id, Name FROM Account")
        ```
    """

    def __init__(
        self,
        transport: "Callable[[ResourceRequest], Awaitable[httpx.Response]] | object",
        settings: ClientSettings | None = None,
        *,
        owns_transport: bool = False,
    ) -> None:
        submit = getattr(transport, "submit", transport)
        if not callable(submit):
            raise TypeError("transport must provide an async submit(request) method")
        self.transport = transport
        self.settings = settings or ClientSettings()
        self._executor = ResourceExecutor(submit, settings=self.settings)
        self._owns_transport = owns_transport

    @classmethod
    def from_credential(
        cls, credential: SessionCredential, settings: ClientSettings | None = None, **client_kwargs
    ) -> "SalesforceClient":
        """Build a client on an ``HttpxTransport`` for a stored session."""
        transport = HttpxTransport.from_credential(credential, settings, **client_kwargs)
        return cls(transport, settings, owns_transport=True)

    # Create

    async def create_async(self, record: ResourceRecord) -> str | None:
        """Create ``record`` remotely and write the new id back onto it.

        Returns the id, or None if the call failed or the id echo was unreadable.
        """
        return await self._executor.execute_async(ResourceRequest.create(record))

    def create(self, record: ResourceRecord) -> str | None:
        """Blocking :meth:`create_async`. None on timeout; the id may still arrive later."""
        return self._executor.execute(ResourceRequest.create(record))

    # Read

    async def read_async(self, request: ResourceRequest) -> list[ResourceRecord]:
        return await self._executor.execute_async(request)

    def read(self, request: ResourceRequest) -> list[ResourceRecord]:
        """Blocking read; ``[]`` both for no records and for a timeout."""
        return self._executor.execute(request)

    async def query_async(self, statement: str) -> list[ResourceRecord]:
        return await self._executor.execute_async(ResourceRequest.query(statement))

    def query(self, statement: str) -> list[ResourceRecord]:
        """Run a SOQL query; ``[]`` both for no rows and for a timeout."""
        return self._executor.execute(ResourceRequest.query(statement))

    async def search_async(self, text: str) -> list[SearchResult]:
        return await self._executor.execute_async(ResourceRequest.search(text))

    def search(self, text: str) -> list[SearchResult] | None:
        """Run a SOSL search; None on timeout."""
        return self._executor.execute(ResourceRequest.search(text))

    async def describe_async(self, resource_type: str) -> Document:
        return await self._executor.execute_async(ResourceRequest.describe(resource_type))

    def describe(self, resource_type: str) -> Document | None:
        """Describe metadata of ``resource_type``; None on timeout."""
        return self._executor.execute(ResourceRequest.describe(resource_type))

    async def changes_async(
        self,
        resource_type: str,
        kind: ChangeType = ChangeType.UPDATED,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> Document:
        return await self._executor.execute_async(ResourceRequest.changes(resource_type, kind, since, until))

    def changes(
        self,
        resource_type: str,
        kind: ChangeType = ChangeType.UPDATED,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> Document | None:
        """Ids of ``resource_type`` objects updated or deleted in a window; None on timeout."""
        return self._executor.execute(ResourceRequest.changes(resource_type, kind, since, until))

    # Update / delete

    async def update_async(self, record: ResourceRecord) -> None:
        await self._executor.execute_async(ResourceRequest.update(record))

    def update(self, record: ResourceRecord) -> None:
        """Fire-and-forget update: failures and timeouts are only logged."""
        self._executor.execute(ResourceRequest.update(record))

    async def delete_async(self, record: ResourceRecord) -> bool:
        return await self._executor.execute_async(ResourceRequest.delete(record))

    def delete(self, record: ResourceRecord) -> bool:
        """True iff the API answered 204 No Content within the timeout."""
        return self._executor.execute(ResourceRequest.delete(record))

    def close(self) -> None:
        """Stop the background loop, closing an owned transport on it first."""
        try:
            if self._owns_transport:
                self._executor.run_on_loop(self.transport.aclose(), self.settings.network_timeout)
        finally:
            self._executor.close()

    async def aclose(self) -> None:
        """Close an owned transport on the running loop, then stop the background loop."""
        try:
            if self._owns_transport:
                await self.transport.aclose()
        finally:
            self._executor.close()

    def __enter__(self) -> "SalesforceClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    async def __aenter__(self) -> "SalesforceClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
