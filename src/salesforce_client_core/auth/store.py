"""Credential stores: where serialized session credentials live.

The library never talks to a keychain or keystore directly. Hosts pick a
``CredentialStore`` implementation at startup and pass it around; the store
calls the credential codec, not the other way round.

Two implementations ship with the library:

- ``MemoryCredentialStore``: process-local, for tests and short-lived tools
- ``FileCredentialStore``: a JSON file of serialized credentials per service

Example:
    ```python
    from salesforce_client_core.auth.store import FileCredentialStore

    store = FileCredentialStore("~/.config/myapp/accounts.json")
    store.save(credential)  # under settings.credential_service_name
    accounts = store.load_all()
    ```
"""

import json
import logging
import os
from pathlib import Path
from threading import Lock
from typing import Protocol

from salesforce_client_core.auth.cookies import CookieJarSerializer
from salesforce_client_core.auth.exceptions import CredentialFileError, MalformedCredentialError
from salesforce_client_core.auth.session import SessionCredential, deserialize_credential, serialize_credential
from salesforce_client_core.config import ClientSettings

logger = logging.getLogger(__name__)


class CredentialStore(Protocol):
    """Persists session credentials per service identifier."""

    def save(self, credential: SessionCredential, service_id: str | None = None) -> None: ...

    def load_all(self, service_id: str | None = None) -> list[SessionCredential]: ...


class _SerializedCredentialStore:
    """Shared logic: credentials are kept as codec strings keyed by username."""

    def __init__(
        self,
        settings: ClientSettings | None = None,
        cookie_serializer: CookieJarSerializer | None = None,
    ) -> None:
        self._settings = settings or ClientSettings()
        self._cookie_serializer = cookie_serializer
        self._lock = Lock()

    def _service(self, service_id: str | None) -> str:
        return service_id or self._settings.credential_service_name

    def _load_entries(self) -> dict[str, dict[str, str]]:
        raise NotImplementedError

    def _store_entries(self, entries: dict[str, dict[str, str]]) -> None:
        raise NotImplementedError

    def save(self, credential: SessionCredential, service_id: str | None = None) -> None:
        """Store a credential, replacing any earlier one with the same username."""
        service = self._service(service_id)
        serialized = serialize_credential(credential, self._cookie_serializer)

        with self._lock:
            entries = self._load_entries()
            entries.setdefault(service, {})[credential.username] = serialized
            self._store_entries(entries)

        logger.debug(f"Saved credential for '{credential.username}' under service '{service}'")

    def load_all(self, service_id: str | None = None) -> list[SessionCredential]:
        """Load every credential stored for a service.

        Entries that cannot be deserialized are skipped with a warning.
        """
        service = self._service(service_id)

        with self._lock:
            stored = dict(self._load_entries().get(service, {}))

        credentials = []
        for username, serialized in stored.items():
            try:
                credentials.append(deserialize_credential(serialized, self._cookie_serializer))
            except MalformedCredentialError as e:
                logger.warning(f"Skipping malformed credential for '{username}' in service '{service}': {e}")
        return credentials

    def delete(self, username: str, service_id: str | None = None) -> bool:
        """Remove a stored credential. Returns True if one was removed."""
        service = self._service(service_id)

        with self._lock:
            entries = self._load_entries()
            accounts = entries.get(service, {})
            if username not in accounts:
                return False
            del accounts[username]
            if not accounts:
                del entries[service]
            self._store_entries(entries)
        return True


class MemoryCredentialStore(_SerializedCredentialStore):
    """Keeps serialized credentials in process memory."""

    def __init__(
        self,
        settings: ClientSettings | None = None,
        cookie_serializer: CookieJarSerializer | None = None,
    ) -> None:
        super().__init__(settings, cookie_serializer)
        self._entries: dict[str, dict[str, str]] = {}

    def _load_entries(self) -> dict[str, dict[str, str]]:
        return {service: dict(accounts) for service, accounts in self._entries.items()}

    def _store_entries(self, entries: dict[str, dict[str, str]]) -> None:
        self._entries = entries


class FileCredentialStore(_SerializedCredentialStore):
    """Keeps serialized credentials in a JSON file.

    The file maps service identifiers to ``{username: serialized}`` objects.
    It is rewritten atomically (temporary file + replace) with mode 0600.
    """

    def __init__(
        self,
        path: str | Path,
        settings: ClientSettings | None = None,
        cookie_serializer: CookieJarSerializer | None = None,
    ) -> None:
        super().__init__(settings, cookie_serializer)
        self.path = Path(os.path.expanduser(os.path.expandvars(str(path))))

    def _load_entries(self) -> dict[str, dict[str, str]]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            raise CredentialFileError(f"Cannot read credential store {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise CredentialFileError(f"Credential store {self.path} is not a JSON object")
        return {
            str(service): {str(u): str(s) for u, s in accounts.items()}
            for service, accounts in data.items()
            if isinstance(accounts, dict)
        }

    def _store_entries(self, entries: dict[str, dict[str, str]]) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(entries, handle, indent=2, sort_keys=True)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise CredentialFileError(f"Cannot write credential store {self.path}: {e}") from e
