"""
Item-related exceptions.
"""

from .base import NotFoundException


class ItemNotFoundException(NotFoundException):
    """Raised when item is not found in database."""

    def __init__(self, item_id: int):
        super().__init__(
            f"Item {item_id} not found",
            details={'item_id': item_id}
        )
        self.item_id = item_id
