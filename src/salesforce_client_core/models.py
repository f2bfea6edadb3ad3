"""Record types returned by and sent to the REST API."""

from dataclasses import dataclass, field
from typing import Any

from salesforce_client_core.documents import Document

ATTRIBUTES_FIELD = "attributes"
ID_FIELD = "Id"


def _attribute_type(members: dict[str, Any]) -> str | None:
    attributes = members.get(ATTRIBUTES_FIELD)
    if isinstance(attributes, dict) and isinstance(attributes.get("type"), str):
        return attributes["type"]
    return None


@dataclass
class ResourceRecord:
    """One remote object instance (an sObject).

    ``id`` is the only field the library ever mutates: a successful create
    writes the server-assigned id back onto the record that was sent.
    """

    resource_type: str | None = None
    id: str | None = None
    fields: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_document(cls, document: Document, resource_type: str | None = None) -> "ResourceRecord":
        """Build a record from a decoded JSON object.

        The type comes from ``attributes.type`` when the API sends it, falling
        back to ``resource_type``.
        """
        members = {key: value.to_python() for key, value in document.as_object().items()}
        record_id = members.get(ID_FIELD)
        return cls(
            resource_type=_attribute_type(members) or resource_type,
            id=str(record_id) if record_id is not None else None,
            fields={k: v for k, v in members.items() if k != ATTRIBUTES_FIELD},
        )

    def payload(self) -> dict[str, Any]:
        """Fields to send on create/update; the id travels in the URL."""
        return {k: v for k, v in self.fields.items() if k not in (ID_FIELD, ATTRIBUTES_FIELD)}

    def __getitem__(self, name: str) -> Any:
        return self.fields[name]

    def __setitem__(self, name: str, value: Any) -> None:
        self.fields[name] = value

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)


@dataclass(frozen=True)
class SearchResult:
    """A single SOSL search hit. Fields beyond type and id are opaque."""

    resource_type: str | None
    id: str | None
    fields: dict[str, Any]

    @classmethod
    def from_document(cls, document: Document) -> "SearchResult":
        members = {key: value.to_python() for key, value in document.as_object().items()}
        record_id = members.get(ID_FIELD)
        return cls(
            resource_type=_attribute_type(members),
            id=str(record_id) if record_id is not None else None,
            fields={k: v for k, v in members.items() if k != ATTRIBUTES_FIELD},
        )
