"""Translate exceptions raised during request handling into error envelopes.

Dispatch is an explicit ``isinstance`` chain over :class:`ErrorCategory`;
more specific categories are checked before the catch-all. Framework
validation errors are first split into the binding, type-mismatch,
validation and unreadable-body categories so that each one keeps its own
application code.
"""

from __future__ import annotations

from collections.abc import Iterable
from collections.abc import Mapping
from collections.abc import Sequence
from dataclasses import dataclass
from http import HTTPStatus
import logging
from typing import Any

from fastapi import status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from errmap.core.error_codes import ErrorCategory
from errmap.core.error_codes import lookup
from errmap.core.exceptions import ArgumentNotValidError
from errmap.core.exceptions import ArgumentTypeMismatchError
from errmap.core.exceptions import BindError
from errmap.core.exceptions import IllegalStateError
from errmap.core.exceptions import MessageNotReadableError
from errmap.core.exceptions import MethodNotSupportedError
from errmap.core.exceptions import RequestBindingError
from errmap.core.exceptions import ServiceError
from errmap.schemas.error import ErrorEnvelope
from errmap.schemas.error import FieldError

logger = logging.getLogger(__name__)

PARAMETER_SOURCES = frozenset({"query", "path", "header", "cookie"})
_LOCATION_PREFIXES = PARAMETER_SOURCES | {"body"}
_CONVERSION_ERROR_TYPES = frozenset({"enum"})
_CONVERSION_ERROR_SUFFIXES = ("_parsing", "_type")
_UNIQUE_VIOLATION_SQLSTATE = "23505"
_UNIQUE_VIOLATION_MARKERS = ("unique constraint", "duplicate key", "duplicate entry")
MISSING_BODY_MESSAGE = "Required request body is missing"


@dataclass(frozen=True)
class MappedError:
    """Envelope produced for one failure together with its category."""

    envelope: ErrorEnvelope
    category: ErrorCategory

    @property
    def status_code(self) -> int:
        return self.envelope.status


def _location(issue: Mapping[str, Any]) -> tuple[Any, ...]:
    location = issue.get("loc", ())
    if isinstance(location, (tuple, list)):
        return tuple(location)
    return (location,)


def _source(issue: Mapping[str, Any]) -> str:
    location = _location(issue)
    return str(location[0]) if location else ""


def format_location(location: Sequence[Any], prefixes: Iterable[str] = _LOCATION_PREFIXES) -> str:
    """Render a validation location as a dotted field name."""
    if not location:
        return "request"

    skipped = set(prefixes)
    filtered = [str(part) for part in location if part not in skipped]
    if filtered:
        return ".".join(filtered)

    return str(location[0])


def field_errors_from_issues(
    issues: Iterable[Mapping[str, Any]],
    prefixes: Iterable[str] = _LOCATION_PREFIXES,
) -> list[FieldError]:
    """Convert pydantic-style error dicts into field errors, keeping their order."""
    prefixes = tuple(prefixes)
    return [
        FieldError(field=format_location(_location(issue), prefixes), message=str(issue.get("msg", "Invalid value")))
        for issue in issues
    ]


def _is_conversion_error(issue: Mapping[str, Any]) -> bool:
    error_type = str(issue.get("type", ""))
    return error_type in _CONVERSION_ERROR_TYPES or error_type.endswith(_CONVERSION_ERROR_SUFFIXES)


def _parameter_name(issue: Mapping[str, Any]) -> str:
    return format_location(_location(issue))


def _unreadable_body_message(issue: Mapping[str, Any]) -> str:
    field_path = _location(issue)[1:]
    message = issue.get("msg", "")
    if not field_path:
        return f"Failed to read request body: {message}"
    return f"Failed to read request body field '{format_location(field_path, ())}': {message}"


def translate_validation_error(exc: RequestValidationError) -> Exception:
    """Split a FastAPI validation error into the category it actually describes."""
    issues = list(exc.errors())

    for issue in issues:
        if issue.get("type") == "json_invalid":
            message = str(issue.get("msg", "JSON decode error"))
            context = issue.get("ctx") or {}
            if context.get("error"):
                message = f"{message}: {context['error']}"
            return MessageNotReadableError(message)
        if _location(issue) == ("body",) and issue.get("type") == "missing":
            return MessageNotReadableError(MISSING_BODY_MESSAGE)

    # A body that cannot be decoded into the declared model is unreadable,
    # not invalid; constraint checks never run on it.
    unreadable = [issue for issue in issues if _source(issue) == "body" and _is_conversion_error(issue)]
    if unreadable:
        return MessageNotReadableError(";".join(_unreadable_body_message(issue) for issue in unreadable))

    missing = [issue for issue in issues if _source(issue) in PARAMETER_SOURCES and issue.get("type") == "missing"]
    if missing:
        return RequestBindingError(
            ";".join(
                f"Required {_source(issue)} parameter '{_parameter_name(issue)}' is not present" for issue in missing
            )
        )

    if issues and all(_source(issue) in PARAMETER_SOURCES and _is_conversion_error(issue) for issue in issues):
        return ArgumentTypeMismatchError(
            ";".join(
                f"Failed to convert {_source(issue)} parameter '{_parameter_name(issue)}': {issue.get('msg', '')}"
                for issue in issues
            )
        )

    return ArgumentNotValidError(field_errors_from_issues(issues))


def is_duplicate_key(exc: IntegrityError) -> bool:
    """Return whether an integrity error comes from a unique-constraint violation."""
    original = exc.orig
    for attribute in ("sqlstate", "pgcode"):
        if getattr(original, attribute, None) == _UNIQUE_VIOLATION_SQLSTATE:
            return True

    try:
        text = str(original if original is not None else exc).lower()
    except Exception:
        return False
    return any(marker in text for marker in _UNIQUE_VIOLATION_MARKERS)


def classify(exc: BaseException) -> tuple[ErrorCategory, BaseException]:
    """Return the category of ``exc`` and the exception that carries its payload."""
    if isinstance(exc, RequestValidationError):
        try:
            exc = translate_validation_error(exc)
        except Exception:
            exc = ArgumentNotValidError()

    if isinstance(exc, ServiceError):
        return ErrorCategory.DOMAIN, exc
    if isinstance(exc, StarletteHTTPException):
        if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
            return ErrorCategory.METHOD_NOT_SUPPORTED, exc
        return ErrorCategory.DOMAIN, exc
    if isinstance(exc, RequestBindingError):
        return ErrorCategory.REQUEST_BINDING, exc
    if isinstance(exc, MethodNotSupportedError):
        return ErrorCategory.METHOD_NOT_SUPPORTED, exc
    if isinstance(exc, ArgumentNotValidError):
        return ErrorCategory.ARGUMENT_NOT_VALID, exc
    if isinstance(exc, ArgumentTypeMismatchError):
        return ErrorCategory.ARGUMENT_TYPE_MISMATCH, exc
    # ValidationError subclasses ValueError, so it has to come first.
    if isinstance(exc, (BindError, ValidationError)):
        return ErrorCategory.BIND, exc
    if isinstance(exc, IllegalStateError):
        return ErrorCategory.ILLEGAL_STATE, exc
    if isinstance(exc, ValueError):
        return ErrorCategory.ILLEGAL_ARGUMENT, exc
    if isinstance(exc, IntegrityError) and is_duplicate_key(exc):
        return ErrorCategory.DUPLICATE_KEY, exc
    if isinstance(exc, MessageNotReadableError):
        return ErrorCategory.BODY_NOT_READABLE, exc
    return ErrorCategory.UNCLASSIFIED, exc


def _http_error_code(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).name
    except ValueError:
        return f"HTTP_{status_code}"


def _coerce_status(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        return lookup(ErrorCategory.UNCLASSIFIED).status_code


def _exception_message(exc: BaseException) -> str | None:
    if not exc.args:
        return None
    return str(exc)


def _join_field_errors(field_errors: Iterable[FieldError]) -> str:
    return ";".join(field_error.render() for field_error in field_errors)


def _build_message(category: ErrorCategory, exc: BaseException) -> str | None:
    if isinstance(exc, ServiceError):
        return None if exc.message is None else str(exc.message)
    if isinstance(exc, StarletteHTTPException):
        return None if exc.detail is None else str(exc.detail)
    if category in (ErrorCategory.ARGUMENT_NOT_VALID, ErrorCategory.BIND):
        if isinstance(exc, ValidationError):
            return _join_field_errors(field_errors_from_issues(exc.errors(), prefixes=()))
        return _join_field_errors(getattr(exc, "field_errors", ()))
    return _exception_message(exc)


def _safe_message(category: ErrorCategory, exc: BaseException) -> str | None:
    try:
        return _build_message(category, exc)
    except Exception:
        return ""


def build_envelope(exc: BaseException) -> MappedError:
    """Map an exception to its envelope without side effects."""
    category, source = classify(exc)
    if category is ErrorCategory.DOMAIN:
        if isinstance(source, ServiceError):
            status_code, code = _coerce_status(source.status_code), source.code
            if not isinstance(code, (int, str)):
                code = str(code)
        else:
            status_code = source.status_code
            code = _http_error_code(status_code)
    else:
        entry = lookup(category)
        status_code, code = entry.status_code, entry.code

    envelope = ErrorEnvelope(status=status_code, code=code, message=_safe_message(category, source))
    return MappedError(envelope=envelope, category=category)


def map_exception(exc: BaseException, path: str) -> MappedError:
    """Map an exception raised while serving ``path`` and log it once."""
    mapped = build_envelope(exc)
    logger.log(
        lookup(mapped.category).log_level,
        "%s[%s => %s]",
        type(exc).__name__,
        path,
        mapped.envelope.message,
        exc_info=exc,
        extra={"error_category": mapped.category.value, "request_path": path},
    )
    return mapped
