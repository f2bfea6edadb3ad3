"""Salesforce Client Core - typed REST operations and persistent sessions.

This library provides:
- Typed create/read/update/delete, SOQL query, SOSL search, describe and
  change-feed operations, each as a coroutine and as a blocking call with a
  bounded wait
- Decoding of REST responses into records, search hits and JSON documents
- A reversible string codec for session credentials, plus credential stores
- Structured errors for transport, decoding and API failures

Example:
    ```python
    from salesforce_client_core import ResourceRecord, SalesforceClient
    from salesforce_client_core.auth.store import FileCredentialStore

    store = FileCredentialStore("~/.config/myapp/accounts.json")
    credential = store.load_all()[0]

    with SalesforceClient.from_credential(credential) as client:
        account = ResourceRecord("Account", fields={"Name": "Acme"})
        client.create(account)
        for record in client.query("SELECT Id, Name FROM Account"):
            print(record["Name"])
    ```
"""

from salesforce_client_core.client import SalesforceClient
from salesforce_client_core.config import ClientSettings
from salesforce_client_core.documents import Document
from salesforce_client_core.models import ResourceRecord, SearchResult
from salesforce_client_core.operations import ChangeType, OperationKind, ResourceRequest

__version__ = "0.1.0"

__all__ = [
    "ChangeType",
    "ClientSettings",
    "Document",
    "OperationKind",
    "ResourceRecord",
    "ResourceRequest",
    "SalesforceClient",
    "SearchResult",
    "__version__",
]
