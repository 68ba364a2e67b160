"""Static table mapping exception categories to application error codes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from types import MappingProxyType

from fastapi import status


class ErrorCategory(str, Enum):
    """Closed set of failure categories, in dispatch priority order."""

    DOMAIN = "domain"
    REQUEST_BINDING = "request_binding"
    METHOD_NOT_SUPPORTED = "method_not_supported"
    ARGUMENT_NOT_VALID = "argument_not_valid"
    ARGUMENT_TYPE_MISMATCH = "argument_type_mismatch"
    BIND = "bind"
    ILLEGAL_STATE = "illegal_state"
    ILLEGAL_ARGUMENT = "illegal_argument"
    DUPLICATE_KEY = "duplicate_key"
    BODY_NOT_READABLE = "body_not_readable"
    UNCLASSIFIED = "unclassified"


@dataclass(frozen=True)
class ErrorCode:
    """Application code, default HTTP status and log level for one category."""

    code: str
    status_code: int
    log_level: int


BIND_ERROR = "BIND_ERROR"
METHOD_NOT_SUPPORTED = "METHOD_NOT_SUPPORTED"
ARGUMENT_NOT_VALID = "ARGUMENT_NOT_VALID"
ARGUMENT_TYPE_MISMATCH = "ARGUMENT_TYPE_MISMATCH"
ILLEGAL_STATE = "ILLEGAL_STATE"
ILLEGAL_ARGUMENT = "ILLEGAL_ARGUMENT"
DUPLICATE_KEY = "DUPLICATE_KEY"
BODY_IS_MISS = "BODY_IS_MISS"
INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"

# Domain errors carry their own code and status; only the log level is read here.
# Illegal state/argument and duplicate key stay at 500 for compatibility with
# existing clients even though they are client-correctable.
ERROR_CODE_TABLE: MappingProxyType[ErrorCategory, ErrorCode] = MappingProxyType(
    {
        ErrorCategory.DOMAIN: ErrorCode("", status.HTTP_500_INTERNAL_SERVER_ERROR, logging.ERROR),
        ErrorCategory.REQUEST_BINDING: ErrorCode(BIND_ERROR, status.HTTP_400_BAD_REQUEST, logging.ERROR),
        ErrorCategory.METHOD_NOT_SUPPORTED: ErrorCode(
            METHOD_NOT_SUPPORTED, status.HTTP_405_METHOD_NOT_ALLOWED, logging.WARNING
        ),
        ErrorCategory.ARGUMENT_NOT_VALID: ErrorCode(ARGUMENT_NOT_VALID, status.HTTP_400_BAD_REQUEST, logging.WARNING),
        ErrorCategory.ARGUMENT_TYPE_MISMATCH: ErrorCode(
            ARGUMENT_TYPE_MISMATCH, status.HTTP_400_BAD_REQUEST, logging.ERROR
        ),
        ErrorCategory.BIND: ErrorCode(BIND_ERROR, status.HTTP_400_BAD_REQUEST, logging.ERROR),
        ErrorCategory.ILLEGAL_STATE: ErrorCode(ILLEGAL_STATE, status.HTTP_500_INTERNAL_SERVER_ERROR, logging.ERROR),
        ErrorCategory.ILLEGAL_ARGUMENT: ErrorCode(
            ILLEGAL_ARGUMENT, status.HTTP_500_INTERNAL_SERVER_ERROR, logging.ERROR
        ),
        ErrorCategory.DUPLICATE_KEY: ErrorCode(DUPLICATE_KEY, status.HTTP_500_INTERNAL_SERVER_ERROR, logging.ERROR),
        ErrorCategory.BODY_NOT_READABLE: ErrorCode(BODY_IS_MISS, status.HTTP_400_BAD_REQUEST, logging.WARNING),
        ErrorCategory.UNCLASSIFIED: ErrorCode(
            INTERNAL_SERVER_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR, logging.ERROR
        ),
    }
)


def lookup(category: ErrorCategory) -> ErrorCode:
    """Return the table entry for a category."""
    return ERROR_CODE_TABLE[category]
