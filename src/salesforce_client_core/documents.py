"""Tagged JSON documents with typed accessors.

Response bodies are parsed into ``Document`` values instead of being poked at
as raw ``dict``/``list`` trees. Every accessor checks the JSON type it expects
and raises ``DecodeError`` on a mismatch, so a shape problem surfaces where the
field is read rather than as an ``AttributeError`` three calls later.

Example:
    ```python
    doc = Document.parse('{"records": [{"Id": "001", "Name": "Acme"}]}')
    for record in doc["records"].as_array():
        print(record["Name"].as_string())
    ```
"""

import json
from enum import Enum
from typing import Any

from salesforce_client_core.errors.exceptions import DecodeError


class DocumentKind(Enum):
    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


def _kind_of(value: Any) -> DocumentKind:
    # bool is a subclass of int, so it has to be checked first
    if value is None:
        return DocumentKind.NULL
    if isinstance(value, bool):
        return DocumentKind.BOOLEAN
    if isinstance(value, (int, float)):
        return DocumentKind.NUMBER
    if isinstance(value, str):
        return DocumentKind.STRING
    if isinstance(value, list):
        return DocumentKind.ARRAY
    if isinstance(value, dict):
        return DocumentKind.OBJECT
    raise TypeError(f"Not a JSON value: {type(value).__name__}")


class Document:
    """An immutable view over one parsed JSON value."""

    __slots__ = ("_value", "_kind")

    def __init__(self, value: Any = None):
        self._kind = _kind_of(value)
        self._value = value

    @classmethod
    def parse(cls, text: str) -> "Document":
        """Parse JSON text.

        Raises:
            DecodeError: If the text is not valid JSON.
        """
        try:
            return cls(json.loads(text))
        except (TypeError, ValueError) as e:
            raise DecodeError(f"Response body is not valid JSON: {e}", body=text) from e

    @property
    def kind(self) -> DocumentKind:
        return self._kind

    @property
    def is_null(self) -> bool:
        return self._kind is DocumentKind.NULL

    def _expect(self, kind: DocumentKind) -> Any:
        if self._kind is not kind:
            raise DecodeError(f"Expected JSON {kind.value}, got {self._kind.value}")
        return self._value

    def as_object(self) -> dict[str, "Document"]:
        return {key: Document(value) for key, value in self._expect(DocumentKind.OBJECT).items()}

    def as_array(self) -> list["Document"]:
        return [Document(value) for value in self._expect(DocumentKind.ARRAY)]

    def as_string(self) -> str:
        return self._expect(DocumentKind.STRING)

    def as_number(self) -> int | float:
        return self._expect(DocumentKind.NUMBER)

    def as_bool(self) -> bool:
        return self._expect(DocumentKind.BOOLEAN)

    def get(self, key: str, default: "Document | None" = None) -> "Document | None":
        """Look up a member of an object document; ``default`` when absent."""
        members = self._expect(DocumentKind.OBJECT)
        if key not in members:
            return default
        return Document(members[key])

    def __getitem__(self, key: str) -> "Document":
        members = self._expect(DocumentKind.OBJECT)
        if key not in members:
            raise DecodeError(f"Missing field '{key}'")
        return Document(members[key])

    def __contains__(self, key: str) -> bool:
        return self._kind is DocumentKind.OBJECT and key in self._value

    def __len__(self) -> int:
        if self._kind in (DocumentKind.OBJECT, DocumentKind.ARRAY, DocumentKind.STRING):
            return len(self._value)
        raise DecodeError(f"JSON {self._kind.value} has no length")

    def to_python(self) -> Any:
        """The underlying plain ``dict``/``list``/scalar value."""
        return self._value

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Document):
            return self._kind is other._kind and self._value == other._value
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self._kind, json.dumps(self._value, sort_keys=True)))

    def __repr__(self) -> str:
        return f"Document({self._value!r})"
