"""
Base exception classes for the catalog.
"""


class CatalogException(Exception):
    """
    Base exception for all catalog errors.

    All custom exceptions should inherit from this class so the transport
    layer can translate them with a single handler.

    Attributes:
        message: Human-readable error message
        details: Optional dict with additional context (entity IDs, limits, etc.)
    """

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        if self.details:
            details_str = ', '.join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.__class__.__name__}('{self.message}', {details_str})"
        return f"{self.__class__.__name__}('{self.message}')"


class ValidationException(CatalogException):
    """Raised when input is malformed, missing or out of range. Never retried."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message, details={'field': field} if field else None)
        self.field = field


class NotFoundException(CatalogException):
    """Base exception for references to ids that do not exist."""
    pass


class ConflictException(CatalogException):
    """Raised when a concurrent mutation invalidated an assumption of the current one."""

    def __init__(self, operation: str, reason: str):
        super().__init__(
            f"Conflict during {operation}: {reason}",
            details={'operation': operation, 'reason': reason}
        )
        self.operation = operation
        self.reason = reason
