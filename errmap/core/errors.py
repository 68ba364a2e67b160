"""Exception handler registration for the shared error envelope."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.base import RequestResponseEndpoint
from starlette.responses import Response

from errmap.core.exceptions import ArgumentNotValidError
from errmap.core.exceptions import ArgumentTypeMismatchError
from errmap.core.exceptions import BindError
from errmap.core.exceptions import IllegalStateError
from errmap.core.exceptions import MessageNotReadableError
from errmap.core.exceptions import MethodNotSupportedError
from errmap.core.exceptions import RequestBindingError
from errmap.core.exceptions import ServiceError
from errmap.core.mapper import map_exception

# Every handled type resolves to the same mapper, so dispatch order lives in
# errmap.core.mapper.classify rather than in Starlette's MRO lookup.
HANDLED_EXCEPTIONS: tuple[type[Exception], ...] = (
    ServiceError,
    StarletteHTTPException,
    RequestBindingError,
    MethodNotSupportedError,
    RequestValidationError,
    ArgumentNotValidError,
    ArgumentTypeMismatchError,
    BindError,
    ValidationError,
    IllegalStateError,
    ValueError,
    IntegrityError,
    MessageNotReadableError,
)


def _response_headers(exc: Exception) -> dict[str, str] | None:
    if isinstance(exc, StarletteHTTPException):
        return exc.headers
    if isinstance(exc, MethodNotSupportedError) and exc.supported:
        return {"Allow": ", ".join(exc.supported)}
    return None


async def error_envelope_handler(request: Request, exc: Exception) -> JSONResponse:
    """Convert any exception raised by a route into the shared envelope."""

    mapped = map_exception(exc, request.url.path)
    return JSONResponse(
        status_code=mapped.status_code,
        content=mapped.envelope.model_dump(),
        headers=_response_headers(exc),
    )


class ErrorEnvelopeMiddleware(BaseHTTPMiddleware):
    """Catch exceptions no registered handler claimed and answer with the envelope.

    Starlette's ``Exception`` handler re-raises after responding, so the
    catch-all lives here instead and the exception ends with this response.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            return await error_envelope_handler(request, exc)


def register_error_handlers(app: FastAPI) -> None:
    """Attach the error envelope handlers and catch-all middleware to a FastAPI app."""

    for exception_type in HANDLED_EXCEPTIONS:
        app.add_exception_handler(exception_type, error_envelope_handler)
    app.add_middleware(ErrorEnvelopeMiddleware)
