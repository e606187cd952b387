"""Application error taxonomy.

Every error raised on purpose by the gateway is an ``AppError``. The central
handlers in ``error_handlers`` turn them into the uniform JSON envelope.
"""
import asyncio
import re
from typing import Any, Optional

from fastapi import status
from tortoise.exceptions import DBConnectionError


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Any = None,
    ):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        super().__init__(message)


class BadRequestError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


TIMEOUT_PATTERN = re.compile(r"\btime(d)? ?out\b")
CONNECTION_PATTERN = re.compile(
    r"\b(connections?|(could not|unable to|failed to) connect|communication link)\b"
)


def classify_database_error(exc: BaseException) -> int:
    """Maps a driver failure to the HTTP status reported to the caller.

    Connection failures are 503, timeouts are 504 and anything else is 500.
    Driver messages are matched on whole words so that a column such as
    ``connector_id`` in a SQL error does not read as a connection failure.
    """
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return status.HTTP_504_GATEWAY_TIMEOUT
    text = str(exc).lower()
    if TIMEOUT_PATTERN.search(text):
        return status.HTTP_504_GATEWAY_TIMEOUT
    if isinstance(exc, (DBConnectionError, ConnectionError)) or CONNECTION_PATTERN.search(text):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


class UpstreamDatabaseError(AppError):
    """A query against one of the external databases failed."""

    def __init__(self, alias: str, exc: BaseException):
        self.alias = alias
        self.cause = exc
        code = classify_database_error(exc)
        if code == status.HTTP_503_SERVICE_UNAVAILABLE:
            message = f"Database '{alias}' is unavailable"
        elif code == status.HTTP_504_GATEWAY_TIMEOUT:
            message = f"Database '{alias}' timed out"
        else:
            message = f"Query against database '{alias}' failed"
        super().__init__(message, status_code=code, details={"detail": str(exc)})
