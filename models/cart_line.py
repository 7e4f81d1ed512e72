# The cart is a single shared ledger of requested items (no users, no sessions).
# Lines carry the ledger name so the shared state has an explicit owner.
from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, Float, ForeignKey, CheckConstraint, UniqueConstraint

from models.base import Base


class CartLine(Base):
    __tablename__ = "cart_lines"

    id = Column(Integer, primary_key=True)
    ledger = Column(String(64), nullable=False, default="shared")
    item_id = Column(Integer, ForeignKey('items.id'), nullable=False, index=True)
    quantity = Column(Float, nullable=False, default=1.0)

    __table_args__ = (
        CheckConstraint('quantity > 0', name='check_cart_quantity_positive'),
        # merge-on-insert: one line per item and ledger
        UniqueConstraint('ledger', 'item_id', name='uq_cart_line_ledger_item'),
    )


class CartLineDTO(BaseModel):
    id: int | None = None
    ledger: str | None = None
    item_id: int | None = None
    quantity: float | None = None
    code: str | None = None
    name: str | None = None
