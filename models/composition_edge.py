from pydantic import BaseModel
from sqlalchemy import Column, Integer, Float, ForeignKey, CheckConstraint

from models.base import Base


# "parent assembly contains child item, quantity N" (one BOM line).
# No ON DELETE CASCADE: deleting an item removes its edges explicitly inside
# the same transaction, the foreign keys only guard against races.
class CompositionEdge(Base):
    __tablename__ = 'composition_edges'

    id = Column(Integer, primary_key=True)
    parent_id = Column(Integer, ForeignKey('items.id'), nullable=False, index=True)
    child_id = Column(Integer, ForeignKey('items.id'), nullable=False, index=True)
    quantity = Column(Float, nullable=False, default=1.0)

    __table_args__ = (
        CheckConstraint('quantity > 0', name='check_edge_quantity_positive'),
        CheckConstraint('parent_id <> child_id', name='check_edge_not_self_referential'),
    )


class CompositionEdgeDTO(BaseModel):
    id: int | None = None
    parent_id: int | None = None
    child_id: int | None = None
    quantity: float | None = None


class ChildEntryDTO(BaseModel):
    """One row of an assembly's BOM: the edge joined with its child item."""
    edge_id: int
    quantity: float
    id: int
    code: str
    name: str
    kind: str
    mass_kg: float | None = None
    length_mm: float | None = None
    width_mm: float | None = None
    height_mm: float | None = None
