"""Exception taxonomy translated into error envelopes."""

from __future__ import annotations

from collections.abc import Sequence

from fastapi import status

from errmap.schemas.error import FieldError


class ServiceError(Exception):
    """Business failure carrying the status, code and message chosen by the raiser."""

    def __init__(self, *, status_code: int, code: int | str, message: str | None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message


class NotFoundError(ServiceError):
    """Convenience exception for missing resources."""

    def __init__(self, *, message: str = "Resource not found") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, code="NOT_FOUND", message=message)


class RequestBindingError(Exception):
    """A required request parameter, header or cookie could not be bound."""


class MethodNotSupportedError(Exception):
    """The route exists but does not accept the request's HTTP method."""

    def __init__(self, method: str, supported: Sequence[str] = ()) -> None:
        super().__init__(f"Request method '{method}' is not supported")
        self.method = method
        self.supported = list(supported)


class ArgumentNotValidError(Exception):
    """Validation of handler arguments failed for one or more fields."""

    def __init__(self, field_errors: Sequence[FieldError] | None = None) -> None:
        self.field_errors = list(field_errors) if field_errors else []
        super().__init__(f"Validation failed for {len(self.field_errors)} field(s)")


class ArgumentTypeMismatchError(Exception):
    """A handler argument could not be converted to its declared type."""


class BindError(Exception):
    """Binding data onto a model failed for one or more fields."""

    def __init__(self, field_errors: Sequence[FieldError] | None = None) -> None:
        self.field_errors = list(field_errors) if field_errors else []
        super().__init__(f"Binding failed for {len(self.field_errors)} field(s)")


class IllegalStateError(RuntimeError):
    """An operation was invoked while the system is in the wrong state."""


class MessageNotReadableError(Exception):
    """The request body is missing or cannot be decoded."""
