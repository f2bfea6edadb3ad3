"""Execute resource requests as coroutines or as blocking calls with a deadline.

``ResourceExecutor`` pairs a request with the transport's async ``submit``
collaborator and exposes two shapes of the same operation:

- ``await execute_async(request)`` runs on the caller's event loop.
- ``execute(request)`` schedules the same coroutine on a background loop and
  waits for it until ``settings.network_timeout`` elapses.

When the deadline passes, the blocking shape returns the kind's "no result"
sentinel instead of raising. The operation is **not cancelled**: it keeps
running in the background and its outcome is only logged. A timed-out create
can therefore still create the object (and back-fill its id) later. Callers
must not read "no result" as "nothing happened remotely".

Sentinels and fault handling per kind:

| Kind | On timeout | On transport/decode fault |
|------|-----------|---------------------------|
| create | ``None`` | ``None`` (logged) |
| update | ``None`` | swallowed (logged) |
| delete | ``False`` | ``False`` (logged) |
| read, query | ``[]`` | raised |
| search, describe, changes | ``None`` | raised |

A naturally empty read/query result and a timed-out one both come back as
``[]`` from the blocking shape.
"""

import asyncio
import concurrent.futures
import logging
import threading
from collections.abc import Awaitable, Callable, Coroutine
from functools import partial
from typing import Any

import httpx

from salesforce_client_core.config import ClientSettings
from salesforce_client_core.decoding import ResponseDecoder
from salesforce_client_core.errors.exceptions import SalesforceError, TransportError
from salesforce_client_core.errors.handler import raise_for_status
from salesforce_client_core.operations import OperationKind, ResourceRequest

logger = logging.getLogger(__name__)

Submit = Callable[[ResourceRequest], Awaitable[httpx.Response]]


def root_cause(exc: BaseException) -> BaseException:
    """Unwrap nested exception groups down to the first leaf exception."""
    while isinstance(exc, BaseExceptionGroup) and exc.exceptions:
        exc = exc.exceptions[0]
    return exc


def timeout_sentinel(request: ResourceRequest) -> Any:
    """The value a blocking call returns when ``request`` misses its deadline."""
    if request.kind is OperationKind.DELETE:
        return False
    if request.kind in (OperationKind.READ, OperationKind.QUERY) and not request.is_describe:
        return []
    return None


class BackgroundLoop:
    """An asyncio event loop running forever on a daemon thread.

    Started lazily on the first submitted coroutine.
    """

    def __init__(self, name: str = "salesforce-client-loop") -> None:
        self._name = name
        self._lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _ensure_started(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._loop is None:
                loop = asyncio.new_event_loop()
                thread = threading.Thread(target=self._run, args=(loop,), name=self._name, daemon=True)
                thread.start()
                self._loop, self._thread = loop, thread
                logger.debug(f"Started background event loop thread '{self._name}'")
            return self._loop

    @staticmethod
    def _run(loop: asyncio.AbstractEventLoop) -> None:
        asyncio.set_event_loop(loop)
        try:
            loop.run_forever()
        finally:
            loop.close()

    def submit(self, coro: Coroutine[Any, Any, Any]) -> concurrent.futures.Future:
        """Schedule ``coro`` on the background loop."""
        return asyncio.run_coroutine_threadsafe(coro, self._ensure_started())

    def close(self, timeout: float | None = 5.0) -> None:
        """Stop the loop. Operations still in flight are dropped."""
        with self._lock:
            loop, thread = self._loop, self._thread
            self._loop = self._thread = None

        if loop is None or thread is None:
            return
        loop.call_soon_threadsafe(loop.stop)
        thread.join(timeout)
        logger.debug(f"Stopped background event loop thread '{self._name}'")


class ResourceExecutor:
    """Runs ``ResourceRequest`` objects through a transport and decodes the results.

    Args:
        submit: Async callable sending a request and returning the HTTP response.
        settings: Immutable client settings; supplies the blocking timeout.
        decoder: Response decoder (mostly for tests).
        loop: Background loop used by the blocking shape.

    Example:
        ```python
        executor = ResourceExecutor(transport.submit, settings=ClientSettings(network_timeout=10))
        records = executor.execute(ResourceRequest.query("SELECT Id FROM Account"))
        ```
    """

    def __init__(
        self,
        submit: Submit,
        *,
        settings: ClientSettings | None = None,
        decoder: ResponseDecoder | None = None,
        loop: BackgroundLoop | None = None,
    ) -> None:
        self._submit = submit
        self.settings = settings or ClientSettings()
        self._decoder = decoder or ResponseDecoder()
        self._loop = loop or BackgroundLoop()

    async def execute_async(self, request: ResourceRequest) -> Any:
        """Run ``request`` on the current event loop and return the decoded result.

        Raises:
            TransportError: The transport failed (the single root cause is
                attached), or the API answered with an error status
                (``APIError`` subclasses). Not raised for create, update or delete.
            DecodeError: The body did not match the shape expected for the
                request kind (read, query, search, describe, changes).
        """
        kind = request.kind

        if kind is OperationKind.DELETE:
            try:
                response = await self._send(request)
            except TransportError as e:
                logger.warning(f"Delete of {request.path} failed: {e}")
                return False
            return self._decoder.decode(request, response)

        if kind in (OperationKind.CREATE, OperationKind.UPDATE):
            try:
                result = await self._process(request)
            except TransportError as e:
                logger.warning(f"{kind.value.capitalize()} of {request.resource_type} failed: {e}")
                return None
            # The caller's record receives the server-assigned id in place
            if kind is OperationKind.CREATE and result is not None and request.payload is not None:
                request.payload.id = result
            return result

        return await self._process(request)

    def execute(self, request: ResourceRequest) -> Any:
        """Run ``request`` and block until it finishes or the timeout elapses.

        Returns the kind's sentinel on timeout (see module docs). A fault that
        completes before the deadline is raised exactly as ``execute_async``
        would raise it.
        """
        timeout = self.settings.network_timeout
        future = self._loop.submit(self.execute_async(request))

        done, _ = concurrent.futures.wait([future], timeout=timeout)
        if not done:
            sentinel = timeout_sentinel(request)
            logger.warning(
                f"{request.method} {request.path} timed out after {timeout}s; "
                f"returning {sentinel!r}, request keeps running in the background"
            )
            future.add_done_callback(partial(_log_abandoned, request))
            return sentinel

        return future.result()

    async def _process(self, request: ResourceRequest) -> Any:
        response = await self._send(request)
        raise_for_status(response)
        return self._decoder.decode(request, response)

    async def _send(self, request: ResourceRequest) -> httpx.Response:
        try:
            return await self._submit(request)
        except Exception as e:
            cause = root_cause(e)
            if isinstance(cause, SalesforceError):
                raise cause from None
            raise TransportError(
                f"{request.method} {request.path} failed: {type(cause).__name__}: {cause}", cause=cause
            ) from cause

    def run_on_loop(self, coro: Coroutine[Any, Any, Any], timeout: float | None = None) -> Any:
        """Run ``coro`` on the loop used by blocking calls and wait for its result."""
        return self._loop.submit(coro).result(timeout)

    def close(self) -> None:
        self._loop.close()

    def __enter__(self) -> "ResourceExecutor":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def _log_abandoned(request: ResourceRequest, future: concurrent.futures.Future) -> None:
    if future.cancelled():
        logger.info(f"Abandoned {request.method} {request.path} was cancelled")
        return
    exc = future.exception()
    if exc is not None:
        logger.warning(f"Abandoned {request.method} {request.path} failed after its deadline: {exc}")
    else:
        logger.info(f"Abandoned {request.method} {request.path} completed after its deadline; result discarded")
