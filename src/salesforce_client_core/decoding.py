"""Turn raw response bodies into records, per originating request kind.

The decoders are deliberately asymmetric:

| Kind | Body | Missing / malformed |
|------|------|---------------------|
| create | ``{"id": ...}`` | ``None`` id, never an error |
| read, query | ``{"records": [...]}`` | no ``records`` field -> ``[]`` |
| read of one instance | ``{...}``, the record itself | non-object -> ``DecodeError`` |
| search | ``[...]`` | non-array -> ``DecodeError`` |
| describe, changes | ``{...}`` returned as is | non-object -> ``DecodeError`` |

Only read and query treat a missing collection as empty. Search, describe and
changes fail loudly on an unexpected shape. A created object whose id echo is
malformed reports "no id" so callers can tell it apart from a failed call.
"""

import logging

import httpx

from salesforce_client_core.documents import Document, DocumentKind
from salesforce_client_core.errors.exceptions import DecodeError
from salesforce_client_core.models import ResourceRecord, SearchResult
from salesforce_client_core.operations import OperationKind, ResourceRequest

logger = logging.getLogger(__name__)

RECORDS_FIELD = "records"


def decode_created_id(body: str) -> str:
    """Extract the ``id`` of a newly created object.

    Raises:
        DecodeError: If the body is not a JSON object with a string ``id``.
    """
    document = Document.parse(body)
    if document.kind is not DocumentKind.OBJECT:
        raise DecodeError(f"Create response must be a JSON object, got {document.kind.value}", body=body)
    return document["id"].as_string()


def decode_records(body: str, resource_type: str | None = None) -> list[ResourceRecord]:
    """Decode the ``records`` collection of a read or query response."""
    document = Document.parse(body)
    if document.kind is not DocumentKind.OBJECT:
        raise DecodeError(f"Expected a JSON object with '{RECORDS_FIELD}', got {document.kind.value}", body=body)

    records = document.get(RECORDS_FIELD)
    if records is None:
        return []

    return [
        ResourceRecord.from_document(item, resource_type)
        for item in records.as_array()
        if item.kind is DocumentKind.OBJECT
    ]


def decode_instance(body: str, resource_type: str | None = None) -> list[ResourceRecord]:
    """Decode a read of one instance, whose body is the record itself, as a one-element list."""
    document = Document.parse(body)
    if document.kind is not DocumentKind.OBJECT:
        raise DecodeError(f"Instance read must return a JSON object, got {document.kind.value}", body=body)
    return [ResourceRecord.from_document(document, resource_type)]


def decode_search_results(body: str) -> list[SearchResult]:
    """Decode a search response, which must be a top-level JSON array."""
    document = Document.parse(body)
    if document.kind is not DocumentKind.ARRAY:
        raise DecodeError(f"Search response must be a JSON array, got {document.kind.value}", body=body)
    return [SearchResult.from_document(item) for item in document.as_array()]


def decode_document(body: str) -> Document:
    """Decode a describe or change-feed response; the body is the result."""
    document = Document.parse(body)
    if document.kind is not DocumentKind.OBJECT:
        raise DecodeError(f"Expected a JSON object, got {document.kind.value}", body=body)
    return document


class ResponseDecoder:
    """Dispatches a response to the decoder for its request kind."""

    def decode(self, request: ResourceRequest, response: httpx.Response):
        body = response.text
        kind = request.kind

        if kind is OperationKind.CREATE:
            try:
                return decode_created_id(body)
            except DecodeError as e:
                logger.warning(f"Created {request.resource_type} but could not read its id: {e}")
                return None

        if kind is OperationKind.UPDATE:
            return None

        if kind is OperationKind.DELETE:
            return response.status_code == httpx.codes.NO_CONTENT

        if kind is OperationKind.SEARCH:
            return decode_search_results(body)

        if kind is OperationKind.CHANGES or request.is_describe:
            return decode_document(body)

        if request.locator is not None and request.locator.instance_id:
            return decode_instance(body, request.resource_type)

        return decode_records(body, request.resource_type)
