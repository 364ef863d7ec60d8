import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse

from codespace_api.services.errors import (
    CodespaceException,
    CommandFailure,
    ConflictError,
    NotFoundError,
    ValidationError,
)

ERROR_STATUS = {
    ValidationError: 400,
    ConflictError: 400,
    CommandFailure: 400,
    NotFoundError: 404,
}

logger = logging.getLogger(__name__)


def failure_status(status_code: int):
    """Route dependency fixing the status used for every domain error on that route."""

    def _set_failure_status(request: Request) -> None:
        request.state.failure_status = status_code

    return _set_failure_status


def _status_for(request: Request, exc: Exception) -> int:
    route_status = getattr(request.state, "failure_status", None)
    return route_status or ERROR_STATUS.get(type(exc), 500)


def _exception_handler(request: Request, exc: CodespaceException):
    status = _status_for(request, exc)
    if status >= 500:
        logger.exception("Unhandled application error for path=%s: %s", request.url.path, exc)
    else:
        logger.warning("Request failed path=%s status=%s error=%s", request.url.path, status, exc)
    if exc.diagnostics:
        logger.error("Cleanup diagnostics for path=%s: %s", request.url.path, "; ".join(exc.diagnostics))
    return JSONResponse({"error": str(exc)}, status_code=status)


def _request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    logger.warning("Malformed request path=%s error=%s", request.url.path, message)
    return JSONResponse({"error": message}, status_code=400)


def register_exception_handlers(app: FastAPI) -> None:
    app.exception_handler(CodespaceException)(_exception_handler)
    app.exception_handler(RequestValidationError)(_request_validation_handler)
