"""Client configuration and multi-source setting resolution.

Settings are resolved once, at construction time, into an immutable
``ClientSettings`` object that is handed to the executor and the credential
stores. Changing the environment after a client has been built has no effect
on that client.

Resolution order for each setting (highest to lowest priority):
1. Explicitly provided value
2. Environment variable
3. .env file (python-dotenv, loaded into the environment)
4. Default value

Example:
    ```python
    from salesforce_client_core.config import ClientSettings

    settings = ClientSettings.from_env()  # SALESFORCE_NETWORK_TIMEOUT etc.
    settings = ClientSettings(network_timeout=5.0)
    ```
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from threading import Lock

from dotenv import load_dotenv

from salesforce_client_core.auth.exceptions import CredentialFileError, CredentialNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_NETWORK_TIMEOUT = 30.0
DEFAULT_CREDENTIAL_SERVICE_NAME = "Salesforce"
DEFAULT_API_VERSION = "v30.0"

NETWORK_TIMEOUT_ENV = "SALESFORCE_NETWORK_TIMEOUT"
CREDENTIAL_SERVICE_ENV = "SALESFORCE_CREDENTIAL_SERVICE"
API_VERSION_ENV = "SALESFORCE_API_VERSION"


class SettingResolver:
    """Resolve settings and secrets from explicit values, the environment, .env and defaults.

    The .env file is loaded at most once per resolver, under a lock.
    Secret values are never written to the log; only their source is.
    """

    def __init__(self, dotenv_path: str | None = None, load_dotenv: bool = True):
        """Initialize the resolver.

        Args:
            dotenv_path: Path to .env file. If None, python-dotenv searches
                parent directories.
            load_dotenv: Whether to load the .env file at all.
        """
        self._dotenv_loaded = False
        self._dotenv_lock = Lock()
        self._dotenv_path = dotenv_path
        self._load_dotenv_enabled = load_dotenv

        if self._load_dotenv_enabled:
            self._ensure_dotenv_loaded()

    def _ensure_dotenv_loaded(self) -> None:
        if self._dotenv_loaded:
            return

        with self._dotenv_lock:
            if self._dotenv_loaded:
                return

            try:
                load_dotenv(dotenv_path=self._dotenv_path)
                logger.debug("Loaded .env file for setting resolution")
            except Exception as e:
                logger.warning(f"Failed to load .env file: {e}")
            # Mark as attempted either way
            self._dotenv_loaded = True

    def resolve(
        self,
        *,
        value: str | None = None,
        env_var_name: str | None = None,
        default: str | None = None,
        required: bool = False,
        secret: bool = True,
    ) -> str | None:
        """Resolve a setting from the first source that provides it.

        Args:
            value: Explicitly provided value (highest priority).
            env_var_name: Environment variable to check (covers .env values).
            default: Fallback when no other source has a value.
            required: Raise CredentialNotFoundError instead of returning None.
            secret: Mask the value in log messages.

        Returns:
            The resolved value, or None if not found and not required.

        Raises:
            CredentialNotFoundError: If required and nothing was found.
        """
        result = None
        source = None

        if value is not None:
            result = value
            source = "explicit parameter"
        elif env_var_name and env_var_name in os.environ:
            result = os.environ[env_var_name]
            source = f"environment variable '{env_var_name}'"
        elif default is not None:
            result = default
            source = "default value"

        if result is not None:
            shown = "***" if secret else result
            logger.debug(f"Resolved setting from {source}: {shown}")

        if required and result is None:
            error_msg = "Required setting not found"
            if env_var_name:
                error_msg += f" (checked env var: {env_var_name})"
            raise CredentialNotFoundError(error_msg, env_var_name=env_var_name)

        return result

    def resolve_from_file(
        self,
        *,
        file_path: str | Path | None = None,
        env_var_name: str | None = None,
        required: bool = False,
    ) -> str | None:
        """Read a secret (typically an access token) from a file.

        The path may come from ``file_path`` or from ``env_var_name`` and
        supports ``~`` and ``$VAR`` expansion. Surrounding whitespace is stripped.

        Raises:
            CredentialFileError: If required and the file cannot be read.
        """
        path_to_use = None

        if file_path is not None:
            path_to_use = str(file_path)
        elif env_var_name:
            path_to_use = self.resolve(env_var_name=env_var_name, secret=False)

        if not path_to_use:
            if required:
                error_msg = "No file path provided for setting resolution"
                if env_var_name:
                    error_msg += f" (env var '{env_var_name}' not set)"
                raise CredentialFileError(error_msg)
            return None

        path_obj = Path(os.path.expanduser(os.path.expandvars(path_to_use)))

        try:
            content = path_obj.read_text().strip()
        except FileNotFoundError:
            error_msg = f"Credential file not found: {path_obj}"
            if required:
                raise CredentialFileError(error_msg) from None
            logger.debug(error_msg)
            return None
        except PermissionError:
            error_msg = f"Permission denied reading credential file: {path_obj}"
            if required:
                raise CredentialFileError(error_msg) from None
            logger.warning(error_msg)
            return None
        except OSError as e:
            error_msg = f"Error reading credential file {path_obj}: {e}"
            if required:
                raise CredentialFileError(error_msg) from e
            logger.warning(error_msg)
            return None

        logger.debug(f"Resolved setting from file: {path_obj} (***)")
        return content


@dataclass(frozen=True)
class ClientSettings:
    """Immutable process configuration for executors and credential stores.

    Attributes:
        network_timeout: Seconds a blocking call waits before returning its
            "no result" sentinel.
        credential_service_name: Identifies this library's accounts in a
            credential store.
        api_version: REST API version segment, e.g. ``v30.0``.
    """

    network_timeout: float = DEFAULT_NETWORK_TIMEOUT
    credential_service_name: str = DEFAULT_CREDENTIAL_SERVICE_NAME
    api_version: str = DEFAULT_API_VERSION

    def __post_init__(self) -> None:
        if self.network_timeout <= 0:
            raise ValueError(f"network_timeout must be positive, got {self.network_timeout}")
        if not self.credential_service_name:
            raise ValueError("credential_service_name must not be empty")

    @classmethod
    def from_env(cls, resolver: SettingResolver | None = None) -> "ClientSettings":
        """Build settings from ``SALESFORCE_*`` environment variables (and .env)."""
        resolver = resolver or SettingResolver()

        raw_timeout = resolver.resolve(
            env_var_name=NETWORK_TIMEOUT_ENV, default=str(DEFAULT_NETWORK_TIMEOUT), secret=False
        )
        try:
            network_timeout = float(raw_timeout)
        except ValueError:
            raise ValueError(f"{NETWORK_TIMEOUT_ENV} must be a number of seconds, got {raw_timeout!r}") from None

        return cls(
            network_timeout=network_timeout,
            credential_service_name=resolver.resolve(
                env_var_name=CREDENTIAL_SERVICE_ENV, default=DEFAULT_CREDENTIAL_SERVICE_NAME, secret=False
            ),
            api_version=resolver.resolve(env_var_name=API_VERSION_ENV, default=DEFAULT_API_VERSION, secret=False),
        )
