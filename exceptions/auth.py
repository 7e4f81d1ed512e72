"""
Admin authentication exceptions.
"""

from .base import CatalogException


class UnauthorizedException(CatalogException):
    """Raised when the admin credential is missing, malformed or expired."""

    def __init__(self, reason: str = "No token"):
        super().__init__(reason)
        self.reason = reason


class ForbiddenException(CatalogException):
    """Raised when a valid credential lacks admin privileges."""

    def __init__(self, identity: str | None = None):
        super().__init__(
            "Forbidden",
            details={'identity': identity} if identity else None
        )
        self.identity = identity
