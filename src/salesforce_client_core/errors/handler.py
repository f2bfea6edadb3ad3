"""Map Salesforce error responses onto the exception hierarchy."""

import httpx

from salesforce_client_core.errors.exceptions import (
    APIError,
    BadRequestError,
    ClientError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    RateLimitError,
    ServerError,
    UnauthorizedError,
)
from salesforce_client_core.errors.models import ApiErrorDetail

EXCEPTION_MAP: dict[int, type[APIError]] = {
    400: BadRequestError,
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    409: ConflictError,
    429: RateLimitError,
}

# Error codes whose meaning is not carried by the status alone.
# The org-wide API limit comes back as 403.
ERROR_CODE_MAP: dict[str, type[APIError]] = {
    "REQUEST_LIMIT_EXCEEDED": RateLimitError,
    "INVALID_SESSION_ID": UnauthorizedError,
}


def _exception_class(status_code: int, error_details: list[ApiErrorDetail]) -> type[APIError]:
    for detail in error_details:
        if detail.error_code in ERROR_CODE_MAP:
            return ERROR_CODE_MAP[detail.error_code]

    if status_code in EXCEPTION_MAP:
        return EXCEPTION_MAP[status_code]
    if 400 <= status_code < 500:
        return ClientError
    if 500 <= status_code < 600:
        return ServerError
    return APIError


def _retry_after(response: httpx.Response) -> int | None:
    try:
        return int(response.headers["retry-after"])
    except (KeyError, ValueError, TypeError):
        return None


def raise_for_status(response: httpx.Response) -> None:
    """Raise the matching ``APIError`` subclass for an error response.

    Salesforce reports errors as a JSON array of ``{message, errorCode,
    fields}`` objects; every entry becomes one line of the message. Bodies
    without that shape fall back to the status code and the start of the
    response text.

    Args:
        response: HTTP response object

    Raises:
        APIError subclass based on error code, then status code
    """
    status_code = response.status_code
    if status_code < 400:
        return

    error_details = ApiErrorDetail.from_response(response)
    exc_class = _exception_class(status_code, error_details)

    if error_details:
        message = "\n".join(detail.to_exception_message() for detail in error_details)
    else:
        response_text = response.text[:200]
        message = f"HTTP {status_code}: {response_text}" if response_text else f"HTTP {status_code}"

    kwargs = {"status_code": status_code, "response": response, "error_details": error_details}
    if exc_class is RateLimitError:
        raise RateLimitError(message, retry_after=_retry_after(response), **kwargs)
    raise exc_class(message, **kwargs)
