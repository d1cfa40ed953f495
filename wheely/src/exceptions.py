"""
Centralized exception handling for Wheely API.

This module provides:
- Base APIException class extending FastAPI's HTTPException.
- Domain exceptions grouped by `ErrorKind` (invalid input, not found,
  conflict, unauthorized, storage failure), each with its status code and
  `X-Error` header.
- Utility functions for formatting DB errors, logging, and routing exceptions.

Usage:
    - Raise specific exceptions in services, guards or route handlers.
    - Branch on `exception.kind` when the HTTP status is not relevant.
    - Use `handle()` to normalize raw exceptions (DB, Redis, Pydantic) into API-friendly responses.
"""

from traceback import format_exception
from logging import getLogger
from fastapi import status, HTTPException
from sqlalchemy import Column
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from psycopg2.errorcodes import UNIQUE_VIOLATION, FOREIGN_KEY_VIOLATION
from pydantic import ValidationError
from redis.exceptions import RedisError

from wheely.src.enums import ErrorKind


# ---------------------------------------------------------------------------
# Utility functions
# ---------------------------------------------------------------------------
def formatIntegrityError(e: IntegrityError) -> str:
    """
    Format a database integrity error into a user-friendly message.

    PostgreSQL errors carry a detail message (`Key (name)=(x) already exists`),
    other drivers only provide the raw message.
    """
    diag = getattr(e.orig, "diag", None)
    errorMessage: str = getattr(diag, "message_detail", None) or str(e.orig)
    errorMessage = errorMessage.translate({ord(i): None for i in '\\"\\.\\(\\)'})
    errorMessage = errorMessage.replace("Key ", "For ")
    errorMessage = errorMessage.replace("=", " value ")
    return errorMessage


def integrityErrorCode(e: IntegrityError) -> str | None:
    """Return the SQLSTATE code of an integrity error, deriving it from the message when the driver has none."""
    code = getattr(e.orig, "pgcode", None)
    if code is not None:
        return code
    message = str(e.orig).upper()
    if "UNIQUE" in message:
        return UNIQUE_VIOLATION
    if "FOREIGN KEY" in message:
        return FOREIGN_KEY_VIOLATION
    return None


def logException(e: Exception) -> None:
    """Log an exception with traceback using Uvicorn's error logger."""
    detail = str(format_exception(type(e), e, e.__traceback__))
    logger = getLogger("uvicorn.error")
    logger.error(detail)


# ---------------------------------------------------------------------------
# Base Exception
# ---------------------------------------------------------------------------
class APIException(HTTPException):
    """
    Base class for all application-specific exceptions.

    Provides default handling of status_code, detail, and headers.
    The `kind` attribute discriminates the failure independently of HTTP.
    """

    kind = ErrorKind.INVALID_INPUT
    status_code = status.HTTP_400_BAD_REQUEST
    detail = None
    headers = None

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("status_code", self.status_code)
        kwargs.setdefault("detail", self.detail)
        kwargs.setdefault("headers", self.headers)
        super().__init__(*args, **kwargs)


# ---------------------------------------------------------------------------
# Exception handling entrypoint
# ---------------------------------------------------------------------------
def handle(e: Exception):
    """
    Normalize and re-raise exceptions as API-friendly errors.

    Converts raw exceptions from DB, Pydantic, Redis, etc. into
    corresponding APIException subclasses. Storage errors are logged
    verbatim and surfaced with an opaque message.
    """
    if isinstance(e, APIException):
        raise e
    if isinstance(e, IntegrityError):
        code = integrityErrorCode(e)
        if code == UNIQUE_VIOLATION:
            raise UniqueViolation(formatIntegrityError(e))
        if code == FOREIGN_KEY_VIOLATION:
            raise ForeignKeyViolation(formatIntegrityError(e))
    if isinstance(e, SQLAlchemyError):
        logException(e)
        raise StorageFailure()
    if isinstance(e, ValidationError):
        raise PydanticError(detail=e.errors())
    if isinstance(e, RedisError):
        raise RedisDBError(detail=str(e))

    logException(e)
    raise e


# ---------------------------------------------------------------------------
# Invalid input
# ---------------------------------------------------------------------------
class PydanticError(APIException):
    kind = ErrorKind.INVALID_INPUT
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    headers = {"X-Error": "PydanticError"}

    def __init__(self, detail: str):
        super().__init__(detail=detail)


class InvalidInput(APIException):
    kind = ErrorKind.INVALID_INPUT
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    headers = {"X-Error": "InvalidInput"}

    def __init__(self, detail: str):
        super().__init__(detail=detail)


class InvalidPassword(InvalidInput):
    headers = {"X-Error": "InvalidPassword"}

    def __init__(self, errors: list[str]):
        super().__init__(detail="Invalid password: " + ", ".join(errors))
        self.errors = errors


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------
class NotFound(APIException):
    kind = ErrorKind.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND
    detail = "The requested resource does not exist"
    headers = {"X-Error": "NotFound"}


class InvalidIdentifier(NotFound):
    detail = "Invalid ID provided"
    headers = {"X-Error": "InvalidIdentifier"}


class UnknownValue(NotFound):
    headers = {"X-Error": "UnknownValue"}

    def __init__(self, column_name: Column):
        detail = f"No record exists for the provided {column_name.name}"
        super().__init__(detail=detail)


class ForeignKeyViolation(NotFound):
    headers = {"X-Error": "ForeignKeyViolation"}

    def __init__(self, detail: str):
        super().__init__(detail=detail)


# ---------------------------------------------------------------------------
# Conflict
# ---------------------------------------------------------------------------
class Conflict(APIException):
    kind = ErrorKind.CONFLICT
    status_code = status.HTTP_409_CONFLICT
    headers = {"X-Error": "Conflict"}

    def __init__(self, detail: str):
        super().__init__(detail=detail)


class UniqueViolation(Conflict):
    headers = {"X-Error": "UniqueViolation"}


class OverlappingPeriod(Conflict):
    headers = {"X-Error": "OverlappingPeriod"}

    def __init__(self, period_name: str):
        super().__init__(detail=f"The time interval overlaps with period {period_name}")
        self.period_name = period_name


# ---------------------------------------------------------------------------
# Unauthorized
# ---------------------------------------------------------------------------
class Unauthorized(APIException):
    kind = ErrorKind.UNAUTHORIZED
    status_code = status.HTTP_403_FORBIDDEN
    detail = "This user has no permission to perform this action"
    headers = {"X-Error": "Unauthorized"}


class NotAuthor(Unauthorized):
    headers = {"X-Error": "NotAuthor"}

    def __init__(self, orm_class):
        detail = f"Only the author can modify this {orm_class.__name__}"
        super().__init__(detail=detail)


class InvalidCredentials(APIException):
    kind = ErrorKind.UNAUTHORIZED
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Invalid email or password"
    headers = {"X-Error": "InvalidCredentials"}


class InvalidToken(APIException):
    kind = ErrorKind.UNAUTHORIZED
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Invalid token"
    headers = {"X-Error": "InvalidToken"}


# ---------------------------------------------------------------------------
# Storage failure
# ---------------------------------------------------------------------------
class StorageFailure(APIException):
    kind = ErrorKind.STORAGE_FAILURE
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    detail = "The storage service failed to process the request"
    headers = {"X-Error": "StorageFailure"}


class LockAcquireTimeout(StorageFailure):
    detail = "Lock acquisition timed out"
    headers = {"X-Error": "LockAcquireTimeout"}


class RedisDBError(StorageFailure):
    headers = {"X-Error": "RedisAPIError"}

    def __init__(self, detail: str):
        super().__init__(detail=detail)
