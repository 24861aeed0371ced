"""Exception handlers: map typed errors to status codes and the JSON error envelope."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.exceptions import AuthError, ServiceUnavailableError, ValidationError
from app.schemas.auth import ErrorResponse

logger = logging.getLogger(__name__)

HTTP_CODES = {
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    415: "UNSUPPORTED_MEDIA_TYPE",
    429: "TOO_MANY_REQUESTS",
}


def error_response(
    status_code: int, message: str, code: str, headers: dict[str, str] | None = None
) -> JSONResponse:
    if status_code == 401:
        headers = {**(headers or {}), "WWW-Authenticate": "Bearer"}
    body = ErrorResponse(message=message, code=code).model_dump(by_alias=True)
    return JSONResponse(status_code=status_code, content=body, headers=headers)


async def handle_auth_error(request: Request, exc: AuthError) -> JSONResponse:
    log = logger.warning if exc.status_code >= 500 else logger.info
    log(
        "Request rejected",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_code": exc.code,
            "status_code": exc.status_code,
        },
    )
    return error_response(exc.status_code, exc.message, exc.code)


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(loc) for loc in first.get("loc", ()) if loc != "body")
        msg = first.get("msg", "Invalid input")
        message = f"{field}: {msg}" if field else msg
    else:
        message = "Request validation failed"
    return error_response(400, message, ValidationError.code)


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = HTTP_CODES.get(exc.status_code, "ERROR")
    return error_response(exc.status_code, str(exc.detail), code, headers=exc.headers)


async def handle_operational_error(request: Request, exc: OperationalError) -> JSONResponse:
    logger.error(
        "Database unavailable",
        extra={"path": request.url.path, "method": request.method, "reason": str(exc)[:500]},
    )
    err = ServiceUnavailableError()
    return error_response(err.status_code, err.message, err.code)


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error", extra={"path": request.url.path, "method": request.method}
    )
    return error_response(500, "Internal server error.", "INTERNAL_ERROR")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthError, handle_auth_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(OperationalError, handle_operational_error)
    app.add_exception_handler(Exception, handle_unexpected)
