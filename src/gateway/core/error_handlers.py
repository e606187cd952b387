"""Central error formatting.

All failures, whether raised on purpose (``AppError``), by FastAPI/Starlette
(``HTTPException``, request validation) or by a bug, leave the gateway in the
same envelope::

    {"success": false, "error": ..., "statusCode": ..., "timestamp": ...,
     "path": ..., "method": ..., "requestId": ..., "details": ...}
"""
import datetime
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import config
from .errors import AppError, UpstreamDatabaseError
from ..common.identifiers import generate_ksuid

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def get_request_id(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if not request_id:
        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_ksuid()
        request.state.request_id = request_id
    return request_id


def error_response(
    request: Request,
    status_code: int,
    message: str,
    details: Any = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    request_id = get_request_id(request)
    body = {
        "success": False,
        "error": message,
        "statusCode": status_code,
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "path": request.url.path,
        "method": request.method,
        "requestId": request_id,
    }
    if details:
        body["details"] = details
    response_headers = {REQUEST_ID_HEADER: request_id}
    if headers:
        response_headers.update(headers)
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body),
        headers=response_headers,
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    details = exc.details
    if isinstance(exc, UpstreamDatabaseError):
        logger.error(
            f"[{get_request_id(request)}] {request.method} {request.url.path}: "
            f"{exc.message} ({exc.cause!r})"
        )
        if config.ENVIRONMENT != "development":
            details = None
    elif exc.status_code >= 500:
        logger.error(f"[{get_request_id(request)}] {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(
            f"[{get_request_id(request)}] {request.method} {request.url.path} -> "
            f"{exc.status_code} {exc.message}"
        )
    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return error_response(request, exc.status_code, exc.message, details, headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        message = "Route not found"
    else:
        message = str(exc.detail)
    return error_response(request, exc.status_code, message, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())[1:]) or "body",
            "message": error.get("msg", ""),
            "value": error.get("input"),
        }
        for error in exc.errors()
    ]
    return error_response(request, status.HTTP_400_BAD_REQUEST, "Validation error", errors)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"[{get_request_id(request)}] Unhandled error on {request.method} {request.url.path}: {exc}",
        exc_info=exc,
    )
    details = {"detail": str(exc)} if config.ENVIRONMENT == "development" else None
    return error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", details)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.middleware("http")
    async def attach_request_id(request: Request, call_next):
        request_id = get_request_id(request)
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
