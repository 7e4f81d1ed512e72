"""
Composition (BOM) exceptions.
"""

from .base import NotFoundException, ValidationException


class CompositionEdgeNotFoundException(NotFoundException):
    """Raised when a composition edge id is unknown."""

    def __init__(self, edge_id: int):
        super().__init__(
            f"Composition edge {edge_id} not found",
            details={'edge_id': edge_id}
        )
        self.edge_id = edge_id


class CycleDetectedException(ValidationException):
    """Raised when a new edge would make an item reachable from itself."""

    def __init__(self, parent_id: int, child_id: int):
        super().__init__(
            f"Adding item {child_id} to item {parent_id} would create a cycle",
            field='childId'
        )
        self.details.update({'parent_id': parent_id, 'child_id': child_id})
        self.parent_id = parent_id
        self.child_id = child_id
