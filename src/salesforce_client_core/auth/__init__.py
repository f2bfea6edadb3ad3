"""Session credentials for Salesforce clients.

This module provides:
- ``SessionCredential`` and its reversible string codec
- Pluggable cookie-jar serializers
- Credential-related exceptions

Credential stores live in :mod:`salesforce_client_core.auth.store`.

Example:
    ```python
    from salesforce_client_core.auth import SessionCredential

    credential = SessionCredential.deserialize(stored_text)
    if credential.requires_reauthentication:
        ...  # run the login flow
    ```
"""

from salesforce_client_core.auth.cookies import CookieJarSerializer, HttpxCookieJarSerializer
from salesforce_client_core.auth.exceptions import (
    CredentialError,
    CredentialFileError,
    CredentialNotFoundError,
    MalformedCredentialError,
)
from salesforce_client_core.auth.session import SessionCredential, deserialize_credential, serialize_credential

__all__ = [
    "CookieJarSerializer",
    "CredentialError",
    "CredentialFileError",
    "CredentialNotFoundError",
    "HttpxCookieJarSerializer",
    "MalformedCredentialError",
    "SessionCredential",
    "deserialize_credential",
    "serialize_credential",
]
