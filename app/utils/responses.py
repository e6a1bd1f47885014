# app/utils/responses.py
"""
Response envelope shared by every endpoint:

    {"message", "status": "success" | "error", "statusCode", "data"?, "error"?}
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config.settings import DEFAULT_ERROR_MESSAGE, DEFAULT_SUCCESS_MESSAGE

logger = logging.getLogger(__name__)

STATUS_SUCCESS = "success"
STATUS_ERROR = "error"

ERROR_NAMES = {
    400: "BadRequestException",
    401: "UnauthorizedException",
    403: "ForbiddenException",
    404: "NotFoundException",
    409: "ConflictException",
    500: "InternalServerErrorException",
}


def success(data: Any = None, message: str = DEFAULT_SUCCESS_MESSAGE, status_code: int = 200) -> dict:
    body = {
        "message": message,
        "status": STATUS_SUCCESS,
        "statusCode": status_code,
    }
    if data is not None:
        body["data"] = jsonable_encoder(data, by_alias=True)
    return body


def error_response(request: Request, status_code: int, message: str, cause: Any = None, headers=None) -> JSONResponse:
    body = {
        "message": message,
        "status": STATUS_ERROR,
        "statusCode": status_code,
        "error": {
            "name": ERROR_NAMES.get(status_code, "HttpException"),
            "cause": cause,
            "path": request.url.path,
            "statusCode": status_code,
        },
    }
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body), headers=headers)


def _validation_message(exc: RequestValidationError) -> str:
    messages = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ())[1:])
        msg = err.get("msg", "Invalid value")
        messages.append(f"{field}: {msg}" if field else msg)
    return ", ".join(messages) or "Validation failed"


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(request, exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return error_response(request, status.HTTP_400_BAD_REQUEST, _validation_message(exc))


async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning(f"Integrity error on {request.url.path}: {exc.orig}")
    return error_response(request, status.HTTP_409_CONFLICT, "Resource already exists")


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unexpected error on {request.method} {request.url.path}")
    return error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, DEFAULT_ERROR_MESSAGE)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
