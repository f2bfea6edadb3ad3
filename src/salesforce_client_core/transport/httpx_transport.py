"""httpx-backed transport for the Salesforce REST API.

``HttpxTransport.submit`` is the collaborator the executor calls: it maps a
``ResourceRequest`` onto an ``httpx.Request`` against
``<instance_url>/services/data/<api_version>/<path>`` and returns the raw
response. It never inspects status codes and never retries; TLS, pooling and
timeouts at the socket level belong to the ``httpx.AsyncClient`` it wraps.

Query and search text is handed to httpx as the ``q`` parameter untouched, so
it is percent-encoded exactly once.

Example:
    ```python
    import httpx
    from salesforce_client_core.transport import HttpxTransport

    transport = HttpxTransport.create(
        instance_url="https://na1.salesforce.com",
        access_token=token,
    )
    response = await transport.submit(ResourceRequest.query("SELECT Id FROM Account"))
    ```
"""

import logging
from datetime import UTC, datetime

import httpx

from salesforce_client_core.auth.exceptions import CredentialNotFoundError
from salesforce_client_core.auth.session import SessionCredential
from salesforce_client_core.config import DEFAULT_API_VERSION, ClientSettings, SettingResolver
from salesforce_client_core.operations import OperationKind, ResourceRequest

logger = logging.getLogger(__name__)

INSTANCE_URL_ENV = "SALESFORCE_INSTANCE_URL"
ACCESS_TOKEN_ENV = "SALESFORCE_ACCESS_TOKEN"
ACCESS_TOKEN_FILE_ENV = "SALESFORCE_ACCESS_TOKEN_FILE"

INSTANCE_URL_ATTRIBUTE = "instance_url"
ACCESS_TOKEN_ATTRIBUTE = "access_token"


def format_timestamp(value: datetime) -> str:
    """ISO-8601 in UTC, seconds precision, as the change-feed endpoints expect.

    Naive datetimes are taken to be UTC already.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S+00:00")


class HttpxTransport:
    """Sends resource requests with an ``httpx.AsyncClient``.

    Args:
        client: Client whose ``base_url`` is the org's instance URL and which
            carries the ``Authorization`` header.
        api_version: REST API version segment, e.g. ``v30.0``.
    """

    def __init__(self, client: httpx.AsyncClient, *, api_version: str = DEFAULT_API_VERSION) -> None:
        self._client = client
        self.api_version = api_version

    @classmethod
    def create(
        cls,
        *,
        instance_url: str,
        access_token: str,
        settings: ClientSettings | None = None,
        cookies: httpx.Cookies | None = None,
        **client_kwargs,
    ) -> "HttpxTransport":
        """Build a transport with its own ``httpx.AsyncClient``."""
        settings = settings or ClientSettings()
        client = httpx.AsyncClient(
            base_url=instance_url.rstrip("/"),
            headers={"Authorization": f"Bearer {access_token}", "Accept": "application/json"},
            cookies=cookies,
            **client_kwargs,
        )
        return cls(client, api_version=settings.api_version)

    @classmethod
    def from_credential(
        cls, credential: SessionCredential, settings: ClientSettings | None = None, **client_kwargs
    ) -> "HttpxTransport":
        """Build a transport from a stored session.

        Uses the ``instance_url`` and ``access_token`` attributes written by the
        OAuth flow, plus the session cookies.

        Raises:
            CredentialNotFoundError: If either attribute is missing.
        """
        missing = [
            name for name in (INSTANCE_URL_ATTRIBUTE, ACCESS_TOKEN_ATTRIBUTE) if not credential.attributes.get(name)
        ]
        if missing:
            raise CredentialNotFoundError(
                f"Credential for '{credential.username}' lacks attribute(s): {', '.join(missing)}"
            )
        if credential.requires_reauthentication:
            logger.warning(f"Credential for '{credential.username}' is flagged for reauthentication")

        cookies = credential.cookies if isinstance(credential.cookies, httpx.Cookies) else None
        return cls.create(
            instance_url=credential.attributes[INSTANCE_URL_ATTRIBUTE],
            access_token=credential.attributes[ACCESS_TOKEN_ATTRIBUTE],
            settings=settings,
            cookies=cookies,
            **client_kwargs,
        )

    def url_path(self, request: ResourceRequest) -> str:
        return f"/services/data/{self.api_version}/{request.path}"

    def build_request(self, request: ResourceRequest) -> httpx.Request:
        """Translate a resource request into an HTTP request (not sent)."""
        params: dict[str, str] = {}
        json_body = None

        if request.kind in (OperationKind.QUERY, OperationKind.SEARCH):
            params["q"] = request.query_text or ""
        elif request.kind is OperationKind.CHANGES and request.since is not None:
            params["start"] = format_timestamp(request.since)
            params["end"] = format_timestamp(request.until or datetime.now(UTC))

        if request.kind in (OperationKind.CREATE, OperationKind.UPDATE) and request.payload is not None:
            json_body = request.payload.payload()

        return self._client.build_request(
            request.method,
            self.url_path(request),
            params=params or None,
            json=json_body,
        )

    async def submit(self, request: ResourceRequest) -> httpx.Response:
        http_request = self.build_request(request)
        logger.debug(f"Sending {http_request.method} {http_request.url.path}")
        response = await self._client.send(http_request)
        logger.debug(f"{http_request.method} {http_request.url.path} -> {response.status_code}")
        return response

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpxTransport":
        await self._client.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self._client.__aexit__(exc_type, exc_val, exc_tb)


def create_transport(
    *,
    instance_url: str | None = None,
    access_token: str | None = None,
    settings: ClientSettings | None = None,
    resolver: SettingResolver | None = None,
    **client_kwargs,
) -> HttpxTransport:
    """Build a transport, resolving missing values from the environment.

    The instance URL comes from ``SALESFORCE_INSTANCE_URL``. The token comes
    from ``SALESFORCE_ACCESS_TOKEN`` or from the file named by
    ``SALESFORCE_ACCESS_TOKEN_FILE``. Both may also come from a .env file.

    Raises:
        CredentialNotFoundError: If the instance URL or token cannot be found.
    """
    resolver = resolver or SettingResolver()
    settings = settings or ClientSettings.from_env(resolver)

    resolved_url = resolver.resolve(value=instance_url, env_var_name=INSTANCE_URL_ENV, required=True, secret=False)
    token = resolver.resolve(value=access_token, env_var_name=ACCESS_TOKEN_ENV)
    if token is None:
        token = resolver.resolve_from_file(env_var_name=ACCESS_TOKEN_FILE_ENV)
    if token is None:
        raise CredentialNotFoundError(
            f"Access token not found (checked {ACCESS_TOKEN_ENV} and {ACCESS_TOKEN_FILE_ENV})",
            env_var_name=ACCESS_TOKEN_ENV,
        )

    return HttpxTransport.create(instance_url=resolved_url, access_token=token, settings=settings, **client_kwargs)
