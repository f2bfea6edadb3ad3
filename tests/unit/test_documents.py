"""Tests for tagged JSON documents."""

import pytest

from salesforce_client_core.documents import Document, DocumentKind
from salesforce_client_core.errors import DecodeError


class TestParse:
    """Test Document.parse."""

    @pytest.mark.parametrize(
        ("text", "kind"),
        [
            ("null", DocumentKind.NULL),
            ("true", DocumentKind.BOOLEAN),
            ("3", DocumentKind.NUMBER),
            ("1.5", DocumentKind.NUMBER),
            ('"x"', DocumentKind.STRING),
            ("[]", DocumentKind.ARRAY),
            ("{}", DocumentKind.OBJECT),
        ],
    )
    def test_kinds(self, text, kind):
        """Test every JSON value gets its tag."""
        assert Document.parse(text).kind is kind

    def test_invalid_json_raises_decode_error(self):
        """Test bad JSON is a DecodeError carrying the body."""
        with pytest.raises(DecodeError) as exc_info:
            Document.parse("<html>")

        assert exc_info.value.body == "<html>"

    def test_non_json_value_rejected(self):
        """Test constructing from a non-JSON Python value fails."""
        with pytest.raises(TypeError):
            Document(object())


class TestAccessors:
    """Test typed accessors."""

    def test_navigation(self):
        """Test walking an object and array."""
        doc = Document.parse('{"records": [{"Id": "001", "Amount": 5, "Active": false}]}')

        (record,) = doc["records"].as_array()

        assert record["Id"].as_string() == "001"
        assert record["Amount"].as_number() == 5
        assert record["Active"].as_bool() is False
        assert set(record.as_object()) == {"Id", "Amount", "Active"}

    @pytest.mark.parametrize(
        ("text", "accessor"),
        [
            ("[]", "as_object"),
            ("{}", "as_array"),
            ("1", "as_string"),
            ('"1"', "as_number"),
            ("1", "as_bool"),
        ],
    )
    def test_type_mismatch_raises(self, text, accessor):
        """Test a wrong accessor is a DecodeError, not an AttributeError."""
        with pytest.raises(DecodeError):
            getattr(Document.parse(text), accessor)()

    def test_bool_is_not_a_number(self):
        """Test booleans are tagged separately from numbers."""
        with pytest.raises(DecodeError):
            Document(True).as_number()

    def test_missing_field(self):
        """Test [] raises on a missing key while get() returns the default."""
        doc = Document.parse('{"a": 1}')

        with pytest.raises(DecodeError, match="Missing field 'b'"):
            doc["b"]
        assert doc.get("b") is None
        assert doc.get("a") == Document(1)

    def test_explicit_null_is_present(self):
        """Test a null member is a NULL document, not a missing one."""
        member = Document.parse('{"a": null}')["a"]

        assert member.is_null
        assert member.kind is DocumentKind.NULL

    def test_contains_and_len(self):
        """Test membership and length."""
        doc = Document.parse('{"a": [1, 2, 3]}')

        assert "a" in doc
        assert "b" not in doc
        assert "a" not in Document([])
        assert len(doc["a"]) == 3
        with pytest.raises(DecodeError):
            len(Document(1))

    def test_to_python(self):
        """Test the plain value is returned."""
        assert Document.parse('{"a": [1]}').to_python() == {"a": [1]}

    def test_equality_and_hash(self):
        """Test documents compare and hash by value."""
        first = Document.parse('{"a": 1, "b": 2}')
        second = Document.parse('{"b": 2, "a": 1}')

        assert first == second
        assert hash(first) == hash(second)
        assert Document(1) != Document(True)
