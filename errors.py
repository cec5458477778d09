"""
Error taxonomy and the uniform JSON response envelopes.

Success: {"statusCode", "data", "message", "success": true}
Failure: {"statusCode", "errorKind", "message", "success": false}
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ApiError(Exception):
    status_code = 500
    error_kind = "ServerError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequest(ApiError):
    status_code = 400
    error_kind = "BadRequest"


class Unauthorized(ApiError):
    status_code = 401
    error_kind = "Unauthorized"


class NotFound(ApiError):
    status_code = 404
    error_kind = "NotFound"


class ServerError(ApiError):
    status_code = 500
    error_kind = "ServerError"


class ServiceUnavailable(ApiError):
    status_code = 503
    error_kind = "ServiceUnavailable"


class ApiResponse(BaseModel):
    statusCode: int = 200
    data: Any = None
    message: str = "Success"
    success: bool = True


class ErrorResponse(BaseModel):
    statusCode: int
    errorKind: str
    message: str
    success: bool = False


def ok(data: Any, message: str) -> ApiResponse:
    return ApiResponse(statusCode=200, data=data, message=message)


def error_response(status_code: int, error_kind: str, message: str) -> JSONResponse:
    body = ErrorResponse(statusCode=status_code, errorKind=error_kind, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    logger.warning(f"{request.method} {request.url.path} -> {exc.status_code} {exc.error_kind}: {exc.message}")
    return error_response(exc.status_code, exc.error_kind, exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    )
    logger.warning(f"{request.method} {request.url.path} -> invalid request: {problems}")
    return error_response(400, BadRequest.error_kind, problems or "Invalid request")


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(500, ServerError.error_kind, "Internal server error")


def add_exception_handlers(application: FastAPI) -> None:
    application.add_exception_handler(ApiError, api_error_handler)
    application.add_exception_handler(RequestValidationError, validation_error_handler)
    application.add_exception_handler(Exception, unhandled_error_handler)
