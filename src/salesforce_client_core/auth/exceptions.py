"""Custom exceptions for session credentials and setting resolution.

Example:
    ```python
    from salesforce_client_core.auth.exceptions import MalformedCredentialError

    try:
        credential = SessionCredential.deserialize(stored)
    except MalformedCredentialError:
        credential = None  # force a fresh login
    ```
"""

from salesforce_client_core.errors.exceptions import SalesforceError


class CredentialError(SalesforceError):
    """Base exception for credential-related errors.

    All credential-specific exceptions inherit from this class,
    making it easy to catch any credential-related error.
    """

    pass


class CredentialNotFoundError(CredentialError):
    """Raised when a required credential or setting cannot be resolved.

    Attributes:
        env_var_name: The environment variable name that was checked (if any).
    """

    def __init__(self, message: str, env_var_name: str | None = None):
        super().__init__(message)
        self.env_var_name = env_var_name


class CredentialFileError(CredentialError):
    """Raised when a credential file cannot be read or written."""

    pass


class MalformedCredentialError(CredentialError):
    """Raised when a serialized session credential violates the codec grammar.

    Attributes:
        segment: The offending ``key=value`` segment (if known).
    """

    def __init__(self, message: str, segment: str | None = None):
        super().__init__(message)
        self.segment = segment
