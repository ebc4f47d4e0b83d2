"""
Custom exception hierarchy for diffcache.

Provides structured error handling with proper HTTP status codes and error codes.
"""

from typing import Optional
from fastapi import Request
from fastapi.responses import JSONResponse


class DiffCacheException(Exception):
    """Base exception for all cache errors"""
    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ReadException(DiffCacheException):
    """Errors reading a file from disk"""
    status_code = 400
    error_code = "READ_ERROR"


class FileNotFoundException(ReadException):
    """Path does not exist at read time"""
    status_code = 404
    error_code = "FILE_NOT_FOUND"


class AccessDeniedException(ReadException):
    """File exists but cannot be read"""
    status_code = 403
    error_code = "ACCESS_DENIED"


class NotAFileException(ReadException):
    """Path points at a directory"""
    status_code = 400
    error_code = "NOT_A_FILE"


class ValidationException(DiffCacheException):
    """Input validation errors"""
    status_code = 400
    error_code = "VALIDATION_ERROR"


class StorageException(DiffCacheException):
    """The durable store rejected a read or write"""
    status_code = 500
    error_code = "STORAGE_ERROR"


class NotInitializedException(StorageException):
    """Store used before init()"""
    error_code = "NOT_INITIALIZED"


# Global exception handler
async def cache_exception_handler(
    request: Request,
    exc: DiffCacheException
) -> JSONResponse:
    """
    Global exception handler for DiffCacheException and its subclasses.

    Returns a JSON response with error code, message, and details.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        }
    )
