"""Exceptions raised by the activity layer and the generic CRUD routes.

Each exception carries its HTTP status and a machine-readable code; the
handlers in ``handlers.py`` render them as RFC 7807 Problem Details.
"""

from typing import Any


class AppException(Exception):
    """Root of the package's exception hierarchy.

    Subclasses override the class-level defaults; instances may replace
    the message and code and attach extra detail fields, which are merged
    into the Problem Details body.

    Attributes:
        message: Human-readable description
        error_code: Stable code clients can switch on
        status_code: HTTP status of the rendered response
        details: Extra fields for the response body
    """

    message: str = "An unexpected error occurred"
    error_code: str = "internal_error"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """A record (or entity type) does not exist.

    Example:
        raise NotFoundError(resource="user", resource_id="42")
    """

    message = "Resource not found"
    error_code = "not_found"
    status_code = 404

    def __init__(
        self,
        message: str | None = None,
        resource: str | None = None,
        resource_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if resource:
            details["resource"] = resource
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(message=message, details=details, **kwargs)


class UnknownEntityError(NotFoundError):
    """Raised when an entity type has no registered model."""

    message = "Unknown entity type"
    error_code = "unknown_entity"

    def __init__(self, entity_type: str, **kwargs: Any) -> None:
        self.entity_type = entity_type
        super().__init__(
            f"Unknown entity type: {entity_type}",
            resource=entity_type,
            **kwargs,
        )


class ValidationError(AppException):
    """Input was rejected; ``errors`` lists one entry per offending field.

    Example:
        raise ValidationError(
            "Unknown field: password",
            errors=[{"field": "password", "message": "Unknown field"}],
        )
    """

    message = "Validation error"
    error_code = "validation_error"
    status_code = 422

    def __init__(
        self,
        message: str | None = None,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if errors:
            details["errors"] = errors
        self.errors = errors or []
        super().__init__(message=message, details=details, **kwargs)


class InvalidActivityError(ValidationError):
    """Raised when a direct activity call breaks the recorder's contract.

    Missing or unsupported ``action``, ``entity_type`` or ``record_id``
    values are misuse of the API and are never silently dropped.
    """

    message = "Invalid activity"
    error_code = "invalid_activity"


class BadRequestError(AppException):
    """The request itself is malformed (body, query parameters).

    Example:
        raise BadRequestError("Request body must be a JSON object")
    """

    message = "Bad request"
    error_code = "bad_request"
    status_code = 400
