"""Transport collaborators: the layer that actually talks HTTP.

The executor only needs an async ``submit(request) -> httpx.Response``.
``HttpxTransport`` is the stock implementation; tests use
``salesforce_client_core.testing.StubTransport`` or ``httpx.MockTransport``.

Example:
    ```python
    from salesforce_client_core.transport import create_transport

    # SALESFORCE_INSTANCE_URL / SALESFORCE_ACCESS_TOKEN from env or .env
    transport = create_transport()
    ```
"""

from salesforce_client_core.transport.httpx_transport import HttpxTransport, create_transport, format_timestamp

__all__ = ["HttpxTransport", "create_transport", "format_timestamp"]
