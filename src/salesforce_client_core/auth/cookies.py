"""Pluggable cookie-jar serializers for session credentials.

The credential codec never looks inside a cookie jar. It hands the jar to a
``CookieJarSerializer`` and base64-encodes whatever bytes come back. The
default serializer understands ``httpx.Cookies``; hosts that keep cookies in a
different jar type plug in their own.
"""

import json
import logging
from http.cookiejar import Cookie
from typing import Any, Protocol

import httpx

logger = logging.getLogger(__name__)


class CookieJarSerializer(Protocol):
    """Turns a cookie jar into opaque bytes and back."""

    def serialize(self, jar: Any) -> bytes: ...

    def deserialize(self, data: bytes) -> Any: ...


class HttpxCookieJarSerializer:
    """Serialize ``httpx.Cookies`` as a JSON list of cookie attributes.

    Only the attributes that matter for replaying a session are kept:
    name, value, domain, path, secure and expiry.
    """

    def serialize(self, jar: httpx.Cookies) -> bytes:
        cookies = [
            {
                "name": cookie.name,
                "value": cookie.value,
                "domain": cookie.domain,
                "path": cookie.path,
                "secure": cookie.secure,
                "expires": cookie.expires,
            }
            for cookie in jar.jar
        ]
        return json.dumps(cookies, separators=(",", ":")).encode("utf-8")

    def deserialize(self, data: bytes) -> httpx.Cookies:
        entries = json.loads(data.decode("utf-8"))
        if not isinstance(entries, list):
            raise ValueError("Cookie payload must be a JSON list")

        jar = httpx.Cookies()
        for entry in entries:
            jar.jar.set_cookie(_make_cookie(entry))
        logger.debug(f"Restored {len(entries)} cookie(s)")
        return jar


def _make_cookie(entry: dict[str, Any]) -> Cookie:
    domain = entry.get("domain") or ""
    path = entry.get("path") or "/"
    return Cookie(
        version=0,
        name=entry["name"],
        value=entry.get("value"),
        port=None,
        port_specified=False,
        domain=domain,
        domain_specified=bool(domain),
        domain_initial_dot=domain.startswith("."),
        path=path,
        path_specified=True,
        secure=bool(entry.get("secure", False)),
        expires=entry.get("expires"),
        discard=entry.get("expires") is None,
        comment=None,
        comment_url=None,
        rest={},
    )


def cookie_count(jar: Any) -> int:
    """Number of cookies in a jar (``None`` counts as empty)."""
    if jar is None:
        return 0
    if isinstance(jar, httpx.Cookies):
        return len(jar.jar)
    return len(jar)
