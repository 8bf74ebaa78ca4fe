"""Error handling module with RFC 7807 Problem Details."""

from activity_logger.core.errors.exceptions import (
    AppException,
    BadRequestError,
    InvalidActivityError,
    NotFoundError,
    UnknownEntityError,
    ValidationError,
)
from activity_logger.core.errors.handlers import (
    FieldError,
    ProblemDetail,
    register_exception_handlers,
)


__all__ = [
    # Exceptions
    "AppException",
    "BadRequestError",
    # Handlers
    "FieldError",
    "InvalidActivityError",
    "NotFoundError",
    "ProblemDetail",
    "UnknownEntityError",
    "ValidationError",
    "register_exception_handlers",
]
