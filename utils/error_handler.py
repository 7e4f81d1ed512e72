"""
Error Handler Utility for the HTTP layer

Provides centralized translation of catalog exceptions with:
- One status code per exception family
- Consistent JSON error bodies
- Logging for debugging

Usage in the app factory:
    from utils.error_handler import http_status_for, error_body

    @app.exception_handler(CatalogException)
    async def catalog_exception_handler(request, exc):
        return JSONResponse(status_code=http_status_for(exc), content=error_body(exc))
"""

import logging

from exceptions import (
    CatalogException,
    ValidationException,
    NotFoundException,
    ConflictException,
    QuotaExceededException,
    StorageException,
    UnauthorizedException,
    ForbiddenException,
)

logger = logging.getLogger(__name__)

# Checked along the exception's MRO, so subclasses (CycleDetectedException,
# ItemNotFoundException, ...) inherit the status of their family.
STATUS_BY_EXCEPTION: dict[type[CatalogException], int] = {
    ValidationException: 400,
    UnauthorizedException: 401,
    ForbiddenException: 403,
    NotFoundException: 404,
    ConflictException: 409,
    QuotaExceededException: 413,
    StorageException: 500,
}


def http_status_for(exception: CatalogException) -> int:
    """
    Map a catalog exception to an HTTP status code.

    Unknown catalog exceptions are internal errors (500).

    Example:
        >>> http_status_for(ItemNotFoundException(item_id=5))
        404
    """
    for cls in type(exception).__mro__:
        status_code = STATUS_BY_EXCEPTION.get(cls)
        if status_code is not None:
            return status_code

    logger.error(f"Unmapped exception type: {type(exception).__name__}")
    return 500


def error_body(exception: CatalogException) -> dict:
    status_code = http_status_for(exception)
    if status_code >= 500:
        logger.error(f"Service error: {type(exception).__name__} - {exception}")
    else:
        logger.warning(f"Service error handled: {type(exception).__name__} - {exception}")

    body = {"error": exception.message}
    if exception.details:
        body["details"] = exception.details
    return body
