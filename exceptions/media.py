"""
Media registry exceptions.
"""

from .base import CatalogException, NotFoundException


class MediaNotFoundException(NotFoundException):
    """Raised when a media reference id is unknown."""

    def __init__(self, media_id: int):
        super().__init__(
            f"Media {media_id} not found",
            details={'media_id': media_id}
        )
        self.media_id = media_id


class QuotaExceededException(CatalogException):
    """Raised when admitting a file would push total media usage above the storage limit."""

    def __init__(self, requested: int, used: int, limit: int):
        super().__init__(
            f"Storage quota exceeded: requested {requested} bytes, "
            f"used {used} of {limit} bytes",
            details={'requested': requested, 'used': used, 'limit': limit}
        )
        self.requested = requested
        self.used = used
        self.limit = limit


class StorageException(CatalogException):
    """Raised when the file store fails to write or delete a file."""

    def __init__(self, operation: str, stored_name: str, reason: str):
        super().__init__(
            f"Storage {operation} failed for '{stored_name}': {reason}",
            details={'operation': operation, 'stored_name': stored_name}
        )
        self.operation = operation
        self.stored_name = stored_name
        self.reason = reason
