"""Tests for the session credential codec.

The serialized form is persisted, so several tests pin exact strings.
"""

import base64
import logging

import httpx
import pytest

from salesforce_client_core.auth import (
    MalformedCredentialError,
    SessionCredential,
    deserialize_credential,
    serialize_credential,
)


def make_cookies() -> httpx.Cookies:
    cookies = httpx.Cookies()
    cookies.set("sid", "00D5e000000abc!AQ=x", domain="na1.salesforce.com", path="/")
    cookies.set("BrowserId", "a b&c", domain=".salesforce.com", path="/")
    return cookies


def cookie_tuples(jar: httpx.Cookies) -> set[tuple]:
    return {(c.name, c.value, c.domain, c.path) for c in jar.jar}


class RecordingSerializer:
    """Cookie serializer treating the jar as raw bytes."""

    def serialize(self, jar):
        return bytes(jar)

    def deserialize(self, data):
        return bytearray(data)


class TestSerialize:
    """Test serialize_credential output format."""

    def test_documented_example(self):
        """Test the canonical example string."""
        credential = SessionCredential("jdoe", {"org": "acme"}, requires_reauthentication=False)

        assert serialize_credential(credential) == "__username__=jdoe&org=acme&force_expiry=False"

    def test_username_first_and_force_expiry_last(self):
        """Test fixed ordering of reserved segments."""
        credential = SessionCredential("u", {"a": "1", "b": "2"}, cookies=make_cookies())

        segments = serialize_credential(credential).split("&")

        assert segments[0] == "__username__=u"
        assert segments[-2].startswith("__cookies__=")
        assert segments[-1] == "force_expiry=True"
        assert set(segments[1:3]) == {"a=1", "b=2"}

    def test_escapes_delimiters_and_percent(self):
        """Test that &, = and % in keys and values are escaped."""
        credential = SessionCredential("a&b", {"k=1": "v%2&x"}, requires_reauthentication=False)

        assert serialize_credential(credential) == "__username__=a%26b&k%3D1=v%252%26x&force_expiry=False"

    def test_escapes_non_ascii_as_utf8(self):
        """Test non-ASCII characters use uppercase UTF-8 percent escapes."""
        credential = SessionCredential("jürgen", {"city": "Zürich ~ok"})

        serialized = serialize_credential(credential)

        assert serialized.startswith("__username__=j%C3%BCrgen&city=Z%C3%BCrich%20~ok&")

    def test_empty_username(self):
        """Test a blank credential serializes with an empty username."""
        assert serialize_credential(SessionCredential()) == "__username__=&force_expiry=True"

    def test_no_cookie_segment_without_cookies(self):
        """Test that an empty or absent jar never emits __cookies__."""
        assert "__cookies__" not in serialize_credential(SessionCredential("u"))
        assert "__cookies__" not in serialize_credential(SessionCredential("u", cookies=httpx.Cookies()))

    def test_cookie_segment_with_cookies(self):
        """Test that a non-empty jar always emits __cookies__."""
        assert "&__cookies__=" in serialize_credential(SessionCredential("u", cookies=make_cookies()))

    def test_cookie_blob_is_escaped_base64(self):
        """Test the blob is base64 of the serializer output, percent-encoded."""
        credential = SessionCredential("u", cookies=bytearray(b"\xfb\xff\xfe"))

        serialized = serialize_credential(credential, RecordingSerializer())

        blob = base64.b64encode(b"\xfb\xff\xfe").decode()
        assert blob == "+//+"
        assert "&__cookies__=%2B%2F%2F%2B&" in serialized

    def test_serialize_is_deterministic(self):
        """Test repeated serialization gives the same string."""
        credential = SessionCredential("u", {"x": "1", "y": "2"}, requires_reauthentication=False)

        assert serialize_credential(credential) == serialize_credential(credential)

    def test_reserved_attribute_key_logs_warning(self, caplog):
        """Test that colliding attribute keys are written but flagged."""
        caplog.set_level(logging.WARNING)

        serialized = serialize_credential(SessionCredential("real", {"__username__": "fake"}))

        assert "__username__=fake" in serialized
        assert "reserved key" in caplog.text

    def test_str_is_serialized_form(self):
        """Test str() of a credential is its serialized form."""
        credential = SessionCredential("jdoe", requires_reauthentication=False)

        assert str(credential) == credential.serialize() == "__username__=jdoe&force_expiry=False"


class TestDeserialize:
    """Test deserialize_credential parsing."""

    def test_documented_example(self):
        """Test the canonical example string parses back."""
        credential = deserialize_credential("__username__=jdoe&org=acme&force_expiry=False")

        assert credential == SessionCredential("jdoe", {"org": "acme"}, requires_reauthentication=False)
        assert credential.cookies is None

    def test_missing_force_expiry_requires_reauthentication(self):
        """Test an absent flag is never trusted as still valid."""
        credential = deserialize_credential("__username__=jdoe&org=acme")

        assert credential.requires_reauthentication is True

    @pytest.mark.parametrize(("text", "expected"), [("True", True), ("false", False), (" TRUE ", True)])
    def test_force_expiry_is_case_insensitive(self, text, expected):
        """Test boolean parsing tolerates case and whitespace."""
        credential = deserialize_credential(f"__username__=u&force_expiry={text}")

        assert credential.requires_reauthentication is expected

    def test_invalid_force_expiry_raises(self):
        """Test a non-boolean flag is malformed."""
        with pytest.raises(MalformedCredentialError):
            deserialize_credential("__username__=u&force_expiry=maybe")

    def test_segment_without_separator_raises(self):
        """Test a segment with no '=' is malformed."""
        with pytest.raises(MalformedCredentialError) as exc_info:
            deserialize_credential("__username__=u&orphan&force_expiry=False")

        assert exc_info.value.segment == "orphan"

    def test_empty_input_raises(self):
        """Test the empty string is not a credential."""
        with pytest.raises(MalformedCredentialError):
            deserialize_credential("")

    def test_empty_value_is_allowed(self):
        """Test 'key=' yields an empty attribute value."""
        credential = deserialize_credential("__username__=u&note=&force_expiry=False")

        assert credential.attributes == {"note": ""}

    def test_splits_only_on_first_separator(self):
        """Test a literal '=' in the encoded value stays in the value."""
        credential = deserialize_credential("__username__=u&token=abc==&force_expiry=False")

        assert credential.attributes["token"] == "abc=="

    def test_decoded_delimiters_do_not_split(self):
        """Test escaped & and = decode into the value."""
        credential = deserialize_credential("__username__=a%26b&k%3D1=v%3Dx%26y")

        assert credential.username == "a&b"
        assert credential.attributes == {"k=1": "v=x&y"}

    def test_plus_is_not_a_space(self):
        """Test '+' survives decoding unchanged."""
        credential = deserialize_credential("__username__=a+b")

        assert credential.username == "a+b"

    def test_invalid_utf8_escape_raises(self):
        """Test an escape that is not valid UTF-8 is malformed."""
        with pytest.raises(MalformedCredentialError):
            deserialize_credential("__username__=%FF%FE")

    def test_reserved_key_wins_over_attribute(self):
        """Test a later __username__ segment overrides the identity (documented quirk)."""
        serialized = serialize_credential(SessionCredential("real", {"__username__": "fake"}))

        credential = deserialize_credential(serialized)

        assert credential.username == "fake"
        assert "__username__" not in credential.attributes

    def test_invalid_base64_cookies_are_dropped(self, caplog):
        """Test undecodable cookies do not fail the rest of the record."""
        caplog.set_level(logging.WARNING)

        credential = deserialize_credential("__username__=u&__cookies__=%21%21not-base64&org=acme&force_expiry=False")

        assert credential.cookies is None
        assert credential.username == "u"
        assert credential.attributes == {"org": "acme"}
        assert credential.requires_reauthentication is False
        assert "Dropping unreadable session cookies" in caplog.text

    def test_serializer_failure_drops_cookies(self):
        """Test a blob the serializer rejects is dropped, not fatal."""
        blob = base64.b64encode(b"not json at all").decode()

        credential = deserialize_credential(f"__username__=u&__cookies__={blob}&force_expiry=False")

        assert credential.cookies is None
        assert credential.username == "u"

    def test_classmethod_form(self):
        """Test SessionCredential.deserialize delegates to the codec."""
        credential = SessionCredential.deserialize("__username__=jdoe&force_expiry=True")

        assert credential.username == "jdoe"
        assert credential.requires_reauthentication is True


class TestRoundTrip:
    """Test serialize -> deserialize reproduces the credential."""

    @pytest.mark.parametrize(
        "credential",
        [
            SessionCredential(),
            SessionCredential("jdoe", {"org": "acme"}, requires_reauthentication=False),
            SessionCredential(
                "user@example.com",
                {
                    "access_token": "00D5e!AQ4AQ.x/y+z==",
                    "instance_url": "https://na1.salesforce.com",
                    "odd key & = %": "värde 100%",
                    "": "empty key",
                },
            ),
        ],
    )
    def test_round_trip_without_cookies(self, credential):
        """Test identity, attributes and flag survive."""
        restored = deserialize_credential(serialize_credential(credential))

        assert restored == credential
        assert restored.cookies is None

    def test_round_trip_with_cookies(self):
        """Test the cookie jar contents survive."""
        credential = SessionCredential("jdoe", {"org": "acme"}, cookies=make_cookies(), requires_reauthentication=False)

        restored = deserialize_credential(serialize_credential(credential))

        assert restored == credential
        assert cookie_tuples(restored.cookies) == cookie_tuples(credential.cookies)

    def test_round_trip_with_custom_serializer(self):
        """Test a pluggable serializer sees exactly its own bytes again."""
        serializer = RecordingSerializer()
        credential = SessionCredential("u", cookies=bytearray(b"\x00opaque\xff"))

        restored = deserialize_credential(serialize_credential(credential, serializer), serializer)

        assert restored.cookies == bytearray(b"\x00opaque\xff")


class TestSessionCredential:
    """Test the credential value object itself."""

    def test_defaults(self):
        """Test a blank credential requires reauthentication."""
        credential = SessionCredential()

        assert credential.username == ""
        assert credential.attributes == {}
        assert credential.cookies is None
        assert credential.requires_reauthentication is True
        assert credential.has_cookies is False

    def test_attributes_are_copied(self):
        """Test the caller's mapping is not aliased."""
        attributes = {"org": "acme"}
        credential = SessionCredential("u", attributes)

        attributes["org"] = "changed"

        assert credential.attributes == {"org": "acme"}

    def test_has_cookies(self):
        """Test has_cookies reflects the jar contents."""
        assert SessionCredential(cookies=httpx.Cookies()).has_cookies is False
        assert SessionCredential(cookies=make_cookies()).has_cookies is True
