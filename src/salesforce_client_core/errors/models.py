"""Salesforce REST error body models."""

from dataclasses import dataclass, field
from typing import Any

import httpx


@dataclass
class ApiErrorDetail:
    """One entry of a Salesforce error response.

    The REST API reports failures as a JSON array of
    ``{"message": ..., "errorCode": ..., "fields": [...]}`` objects.
    See: https://developer.salesforce.com/docs/atlas.en-us.api_rest.meta/api_rest/errorcodes.htm
    """

    message: str | None = None
    error_code: str | None = None
    fields: list[str] = field(default_factory=list)

    # Anything else the API sent along
    extensions: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ApiErrorDetail":
        known = {"message", "errorCode", "fields"}
        extensions = {k: v for k, v in data.items() if k not in known}
        fields = data.get("fields") or []
        return cls(
            message=data.get("message"),
            error_code=data.get("errorCode"),
            fields=[str(f) for f in fields] if isinstance(fields, list) else [],
            extensions=extensions if extensions else None,
        )

    @classmethod
    def from_response(cls, response: httpx.Response) -> "list[ApiErrorDetail]":
        """Parse Salesforce error details from an HTTP response.

        Args:
            response: HTTP response object

        Returns:
            List of error details, empty if the body is not in the Salesforce format
        """
        try:
            data = response.json()
        except (ValueError, TypeError, AttributeError):
            # JSON decode errors, empty bodies or missing .json() method
            return []

        # Some endpoints (OAuth, composite) answer with a single object
        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list):
            return []

        details = []
        for item in data:
            if not isinstance(item, dict):
                continue
            if "message" not in item and "errorCode" not in item:
                continue
            details.append(cls.from_dict(item))
        return details

    def to_exception_message(self) -> str:
        """Convert the error detail to an exception message line."""
        if self.error_code and self.message:
            text = f"{self.error_code}: {self.message}"
        else:
            text = self.error_code or self.message or "Unknown API error"

        if self.fields:
            text += f" (fields: {', '.join(self.fields)})"
        return text
