"""Typed descriptors for the operations the client can perform.

A ``ResourceRequest`` says *what* to do. It carries no URL encoding and no
HTTP details beyond the verb and the relative path, so the transport encodes
query text exactly once.

Example:
    ```python
    from salesforce_client_core.operations import ResourceRequest

    request = ResourceRequest.query("SELECT Id, Name FROM Account WHERE Name LIKE 'A%'")
    request.path        # 'query'
    request.query_text  # unchanged; the transport sends it as ?q=...
    ```
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from salesforce_client_core.models import ResourceRecord

DESCRIBE_ACTION = "describe"


class OperationKind(Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    QUERY = "query"
    SEARCH = "search"
    CHANGES = "changes"


class ChangeType(Enum):
    """Which changes a change-feed request asks for.

    ``DEFAULT`` is an alias for ``UPDATED``: the API returns updates when no
    kind is given.
    """

    UPDATED = "updated"
    DELETED = "deleted"
    DEFAULT = "updated"


_METHODS = {
    OperationKind.CREATE: "POST",
    OperationKind.UPDATE: "PATCH",
    OperationKind.DELETE: "DELETE",
}


@dataclass(frozen=True)
class ResourceLocator:
    """Addresses a resource type, optionally an instance and a special action."""

    resource_type: str
    instance_id: str | None = None
    action: str | None = None

    def __post_init__(self) -> None:
        if not self.resource_type:
            raise ValueError("resource_type must not be empty")

    @property
    def path(self) -> str:
        segments = ["sobjects", self.resource_type, self.instance_id, self.action]
        return "/".join(segment for segment in segments if segment)


@dataclass(frozen=True)
class ResourceRequest:
    """One operation against the remote API.

    Use the factory classmethods rather than the constructor; they enforce the
    fields each kind needs.
    """

    kind: OperationKind
    locator: ResourceLocator | None = None
    payload: ResourceRecord | None = None
    query_text: str | None = None
    since: datetime | None = None
    until: datetime | None = None

    def __post_init__(self) -> None:
        if self.until is not None:
            if self.since is None:
                raise ValueError("until requires since; a change-feed window needs both ends or neither")
            if self.until < self.since:
                raise ValueError("until must not be earlier than since")

    @classmethod
    def create(cls, record: ResourceRecord) -> "ResourceRequest":
        if not record.resource_type:
            raise ValueError("Cannot create a record without a resource_type")
        return cls(OperationKind.CREATE, ResourceLocator(record.resource_type), payload=record)

    @classmethod
    def read(cls, resource_type: str, instance_id: str | None = None) -> "ResourceRequest":
        return cls(OperationKind.READ, ResourceLocator(resource_type, instance_id))

    @classmethod
    def describe(cls, resource_type: str) -> "ResourceRequest":
        return cls(OperationKind.READ, ResourceLocator(resource_type, action=DESCRIBE_ACTION))

    @classmethod
    def update(cls, record: ResourceRecord) -> "ResourceRequest":
        return cls(OperationKind.UPDATE, _instance_locator(record), payload=record)

    @classmethod
    def delete(cls, record: ResourceRecord) -> "ResourceRequest":
        return cls(OperationKind.DELETE, _instance_locator(record), payload=record)

    @classmethod
    def query(cls, statement: str) -> "ResourceRequest":
        return cls(OperationKind.QUERY, query_text=statement)

    @classmethod
    def search(cls, text: str) -> "ResourceRequest":
        return cls(OperationKind.SEARCH, query_text=text)

    @classmethod
    def changes(
        cls,
        resource_type: str,
        change_type: ChangeType = ChangeType.UPDATED,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> "ResourceRequest":
        """Objects of ``resource_type`` changed between ``since`` and ``until``.

        A missing ``until`` means "now"; ``until`` without ``since`` is
        rejected. The API rejects windows that start more than 30 days back
        and caps the result at 200,000 ids; narrow or split the window if it
        answers ``EXCEEDED_ID_LIMIT``.
        """
        locator = ResourceLocator(resource_type, action=change_type.value)
        return cls(OperationKind.CHANGES, locator, since=since, until=until)

    @property
    def is_describe(self) -> bool:
        return (
            self.kind is OperationKind.READ
            and self.locator is not None
            and self.locator.action == DESCRIBE_ACTION
        )

    @property
    def method(self) -> str:
        return _METHODS.get(self.kind, "GET")

    @property
    def path(self) -> str:
        """Path relative to ``/services/data/<version>/``."""
        if self.kind is OperationKind.QUERY:
            return "query"
        if self.kind is OperationKind.SEARCH:
            return "search"
        if self.locator is None:
            raise ValueError(f"{self.kind.value} request has no resource locator")
        return self.locator.path

    @property
    def resource_type(self) -> str | None:
        return self.locator.resource_type if self.locator else None


def _instance_locator(record: ResourceRecord) -> ResourceLocator:
    if not record.resource_type or not record.id:
        raise ValueError("Record needs both resource_type and id")
    return ResourceLocator(record.resource_type, record.id)
