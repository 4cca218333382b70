"""
Error taxonomy and the handlers that turn it into response envelopes.

Every failure leaves the API as ``{"success": false, "message": ...}``.
Server-side failures are logged with their traceback and reported with a
generic message only.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class FlowboardError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationError(FlowboardError):
    status_code = 401
    default_message = "Could not validate credentials"


class AuthorizationError(FlowboardError):
    status_code = 403
    default_message = "Not allowed"


class NotFoundError(FlowboardError):
    status_code = 404
    default_message = "Resource not found"


class ValidationError(FlowboardError):
    status_code = 400
    default_message = "Invalid request"


class DataIntegrityError(FlowboardError):
    """Stored data violates a structural invariant (e.g. a hierarchy cycle)."""

    status_code = 500


class InternalError(FlowboardError):
    status_code = 500


class QueryTimeoutError(InternalError):
    status_code = 504
    default_message = "The request took too long to complete"


def error_envelope(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message},
        headers=headers,
    )


def _describe_validation_error(exc: RequestValidationError) -> str:
    missing = []
    invalid = []
    for error in exc.errors():
        # loc is ("body" | "query" | "path", field, ...)
        field = ".".join(str(part) for part in error["loc"][1:]) or str(error["loc"][0])
        if error["type"] == "missing":
            missing.append(field)
        else:
            invalid.append(field)

    if missing:
        return f"{', '.join(missing)} {'is' if len(missing) == 1 else 'are'} required"
    return f"Invalid {', '.join(invalid)}"


def register_exception_handlers(app: FastAPI) -> None:
    """Install the envelope handlers on the application."""

    @app.exception_handler(FlowboardError)
    async def handle_flowboard_error(request: Request, exc: FlowboardError):
        if exc.status_code >= 500:
            logger.error(
                "%s on %s %s: %s",
                type(exc).__name__, request.method, request.url.path, exc.message,
                exc_info=exc.__cause__ or exc,
            )
            message = exc.message if isinstance(exc, QueryTimeoutError) else "Internal server error"
            return error_envelope(exc.status_code, message)

        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
        return error_envelope(exc.status_code, exc.message, headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return error_envelope(400, _describe_validation_error(exc))

    @app.exception_handler(SQLAlchemyError)
    async def handle_store_error(request: Request, exc: SQLAlchemyError):
        logger.exception("Store failure on %s %s", request.method, request.url.path)
        return error_envelope(500, "Internal server error")

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_envelope(500, "Internal server error")
