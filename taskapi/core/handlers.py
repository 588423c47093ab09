import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskapi.core.errors import ApiError, InternalError, RequestValidationFailed
from taskapi.core.responses import error_response

logger = logging.getLogger(__name__)

LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}
VALUE_ERROR_PREFIX = "Value error, "


def format_validation_errors(errors: list[dict]) -> list[dict]:
    formatted = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ())]
        parts = location[1:] if location and location[0] in LOCATION_PREFIXES else location
        field = ".".join(parts) or (location[0] if location else "request")

        message = error.get("msg", "Invalid value")
        if message.startswith(VALUE_ERROR_PREFIX):
            message = message[len(VALUE_ERROR_PREFIX):]

        formatted.append({"field": field, "message": message})
    return formatted


def api_error_response(exc: ApiError):
    if isinstance(exc, RequestValidationFailed):
        return error_response(exc.status_code, exc.message, errors=exc.errors)
    return error_response(exc.status_code, exc.message)


async def handle_api_error(request: Request, exc: ApiError):
    return api_error_response(exc)


async def handle_request_validation_error(request: Request, exc: RequestValidationError):
    return api_error_response(RequestValidationFailed(format_validation_errors(exc.errors())))


async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return error_response(
            exc.status_code,
            "Route not found",
            path=request.url.path,
            method=request.method,
        )
    return error_response(exc.status_code, str(exc.detail))


async def handle_database_error(request: Request, exc: SQLAlchemyError):
    logger.exception('Database error while handling %s %s', request.method, request.url.path)
    return api_error_response(InternalError())


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception('Unhandled error while handling %s %s', request.method, request.url.path)
    return api_error_response(InternalError())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, handle_api_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(SQLAlchemyError, handle_database_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
