"""Error taxonomy and Salesforce error-body handling."""

from salesforce_client_core.errors.exceptions import (
    APIError,
    BadRequestError,
    ClientError,
    ConflictError,
    DecodeError,
    ForbiddenError,
    NotFoundError,
    RateLimitError,
    SalesforceError,
    ServerError,
    TransportError,
    UnauthorizedError,
)
from salesforce_client_core.errors.handler import raise_for_status
from salesforce_client_core.errors.models import ApiErrorDetail

__all__ = [
    "APIError",
    "ApiErrorDetail",
    "BadRequestError",
    "ClientError",
    "ConflictError",
    "DecodeError",
    "ForbiddenError",
    "NotFoundError",
    "RateLimitError",
    "SalesforceError",
    "ServerError",
    "TransportError",
    "UnauthorizedError",
    "raise_for_status",
]
