"""Session credentials and their persisted string encoding.

A session credential is stored as a single string of percent-encoded
``key=value`` pairs joined by ``&``::

    __username__=jdoe&org=acme&__cookies__=<blob>&force_expiry=False

``__username__`` always comes first and ``force_expiry`` always comes last.
Attributes sit in between, followed by ``__cookies__`` when the jar is
non-empty. The blob is the base64 text of whatever the cookie-jar serializer
produced. Keys and values are escaped with RFC 3986 rules (everything except
``A-Z a-z 0-9 - . _ ~``, uppercase hex). Credentials written by other
implementations of the format load unchanged.

The reserved keys share the attribute namespace. An attribute literally
named ``__username__``, ``__cookies__`` or ``force_expiry`` is written out as
is, but reads back as the reserved field and is lost as an attribute.

Example:
    ```python
    from salesforce_client_core.auth import SessionCredential

    credential = SessionCredential("jdoe", {"org": "acme"}, requires_reauthentication=False)
    stored = credential.serialize()
    # '__username__=jdoe&org=acme&force_expiry=False'
    assert SessionCredential.deserialize(stored) == credential
    ```
"""

import base64
import logging
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote, unquote

from salesforce_client_core.auth.cookies import CookieJarSerializer, HttpxCookieJarSerializer, cookie_count
from salesforce_client_core.auth.exceptions import MalformedCredentialError

logger = logging.getLogger(__name__)

USERNAME_KEY = "__username__"
COOKIES_KEY = "__cookies__"
FORCE_EXPIRY_KEY = "force_expiry"

RESERVED_KEYS = frozenset([USERNAME_KEY, COOKIES_KEY, FORCE_EXPIRY_KEY])


@dataclass
class SessionCredential:
    """An authenticated session: identity, attributes, cookies and expiry flag.

    Attributes:
        username: Key the account is stored under. May be empty.
        attributes: Free-form string properties (access token, instance URL, ...).
        cookies: Opaque cookie jar, ``httpx.Cookies`` with the default serializer.
            Not part of equality; compare jar contents explicitly.
        requires_reauthentication: Whether the user must log in again.
            Defaults to True, so a credential is never trusted by accident.
    """

    username: str = ""
    attributes: dict[str, str] = field(default_factory=dict)
    cookies: Any = field(default=None, compare=False, repr=False)
    requires_reauthentication: bool = True

    def __post_init__(self) -> None:
        # Never alias the caller's mapping
        self.attributes = dict(self.attributes) if self.attributes else {}

    @property
    def has_cookies(self) -> bool:
        return cookie_count(self.cookies) > 0

    def serialize(self, cookie_serializer: CookieJarSerializer | None = None) -> str:
        """Serialize this credential into its persisted string form."""
        return serialize_credential(self, cookie_serializer)

    @classmethod
    def deserialize(cls, text: str, cookie_serializer: CookieJarSerializer | None = None) -> "SessionCredential":
        """Restore a credential from the output of :meth:`serialize`."""
        return deserialize_credential(text, cookie_serializer)

    def __str__(self) -> str:
        return self.serialize()


def _escape(text: str) -> str:
    return quote(text, safe="")


def _unescape(text: str, segment: str) -> str:
    try:
        return unquote(text, errors="strict")
    except UnicodeDecodeError as e:
        raise MalformedCredentialError("Percent-escape does not decode as UTF-8", segment=segment) from e


def _parse_bool(text: str, segment: str) -> bool:
    normalized = text.strip().lower()
    if normalized == "true":
        return True
    if normalized == "false":
        return False
    raise MalformedCredentialError(f"Invalid {FORCE_EXPIRY_KEY} value: {text!r}", segment=segment)


def serialize_credential(credential: SessionCredential, cookie_serializer: CookieJarSerializer | None = None) -> str:
    """Encode a credential as an ``&``-joined sequence of escaped ``key=value`` pairs.

    Args:
        credential: The credential to encode.
        cookie_serializer: Turns the cookie jar into bytes. Defaults to
            :class:`HttpxCookieJarSerializer`.

    Returns:
        The persisted string form. Contains ``__cookies__`` only if the jar
        holds at least one cookie.
    """
    pairs = [(USERNAME_KEY, credential.username)]

    for key, value in credential.attributes.items():
        if key in RESERVED_KEYS:
            logger.warning(f"Attribute '{key}' collides with a reserved key and will not survive deserialization")
        pairs.append((key, value))

    if credential.has_cookies:
        serializer = cookie_serializer or HttpxCookieJarSerializer()
        blob = base64.b64encode(serializer.serialize(credential.cookies)).decode("ascii")
        pairs.append((COOKIES_KEY, blob))

    pairs.append((FORCE_EXPIRY_KEY, str(bool(credential.requires_reauthentication))))

    return "&".join(f"{_escape(key)}={_escape(value)}" for key, value in pairs)


def deserialize_credential(text: str, cookie_serializer: CookieJarSerializer | None = None) -> SessionCredential:
    """Parse a string produced by :func:`serialize_credential`.

    Each ``&``-separated segment is split on its first ``=`` before unescaping,
    so escaped delimiters inside keys and values are preserved. A missing
    ``force_expiry`` leaves ``requires_reauthentication`` set to True.

    Raises:
        MalformedCredentialError: If a segment has no ``=``, an escape is not
            valid UTF-8, or ``force_expiry`` is not a boolean.
    """
    credential = SessionCredential()

    for segment in text.split("&"):
        raw_key, separator, raw_value = segment.partition("=")
        if not separator:
            raise MalformedCredentialError("Credential segment has no '=' separator", segment=segment)

        key = _unescape(raw_key, segment)
        value = _unescape(raw_value, segment)

        if key == COOKIES_KEY:
            credential.cookies = _restore_cookies(value, cookie_serializer or HttpxCookieJarSerializer())
        elif key == USERNAME_KEY:
            credential.username = value
        elif key == FORCE_EXPIRY_KEY:
            credential.requires_reauthentication = _parse_bool(value, segment)
        else:
            credential.attributes[key] = value

    return credential


def _restore_cookies(blob: str, serializer: CookieJarSerializer) -> Any:
    """Decode a cookie blob; an unreadable blob drops the cookies, not the credential."""
    try:
        data = base64.b64decode(blob, validate=True)
        return serializer.deserialize(data)
    except Exception as e:
        logger.warning(f"Dropping unreadable session cookies: {type(e).__name__}: {e}")
        return None
