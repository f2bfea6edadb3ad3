"""Structured exceptions for the Salesforce client."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

    from salesforce_client_core.errors.models import ApiErrorDetail


class SalesforceError(Exception):
    """Base exception for every error raised by this library."""

    pass


class DecodeError(SalesforceError):
    """Response body does not match the shape expected for its request kind."""

    def __init__(self, message: str, body: str | None = None):
        super().__init__(message)
        self.body = body


class TransportError(SalesforceError):
    """The transport collaborator failed to process a request.

    ``cause`` holds the single underlying exception, never an exception group.
    """

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


class APIError(TransportError):
    """The remote API answered with an error status."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: "httpx.Response | None" = None,
        error_details: "list[ApiErrorDetail] | None" = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response = response
        self.error_details = error_details if error_details is not None else []

    @property
    def error_code(self) -> str | None:
        """Salesforce ``errorCode`` of the first reported error, if any."""
        if self.error_details:
            return self.error_details[0].error_code
        return None


class ClientError(APIError):
    """4xx client errors."""

    pass


class BadRequestError(ClientError):
    """400 Bad Request (malformed SOQL, invalid field, ...)."""

    pass


class UnauthorizedError(ClientError):
    """401 Unauthorized (session expired or invalid)."""

    pass


class ForbiddenError(ClientError):
    """403 Forbidden."""

    pass


class NotFoundError(ClientError):
    """404 Not Found."""

    pass


class ConflictError(ClientError):
    """409 Conflict."""

    pass


class RateLimitError(ClientError):
    """429 Too Many Requests."""

    def __init__(self, message: str, retry_after: int | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class ServerError(APIError):
    """5xx server errors."""

    pass
