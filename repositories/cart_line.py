from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from models.cart_line import CartLine, CartLineDTO
from models.item import Item


class CartLineRepository:

    @staticmethod
    async def get_by_item(ledger: str, item_id: int, session: AsyncSession) -> CartLineDTO | None:
        stmt = select(CartLine).where(CartLine.ledger == ledger, CartLine.item_id == item_id)
        result = await session.execute(stmt)
        line = result.scalar()
        if line is None:
            return None
        return CartLineDTO.model_validate(line, from_attributes=True)

    @staticmethod
    async def get_all(ledger: str, session: AsyncSession) -> list[CartLineDTO]:
        stmt = (select(CartLine, Item.code, Item.name)
                .join(Item, Item.id == CartLine.item_id)
                .where(CartLine.ledger == ledger)
                .order_by(CartLine.id))
        result = await session.execute(stmt)
        return [
            CartLineDTO(
                id=line.id,
                ledger=line.ledger,
                item_id=line.item_id,
                quantity=line.quantity,
                code=code,
                name=name,
            )
            for line, code, name in result.all()
        ]

    @staticmethod
    async def create(cart_line: CartLineDTO, session: AsyncSession) -> CartLineDTO:
        line = CartLine(
            ledger=cart_line.ledger,
            item_id=cart_line.item_id,
            quantity=cart_line.quantity,
        )
        session.add(line)
        await session.flush()
        return CartLineDTO.model_validate(line, from_attributes=True)

    @staticmethod
    async def increase_quantity(line_id: int, amount: float, session: AsyncSession) -> None:
        # Increment in SQL, so two merges never overwrite each other
        stmt = (update(CartLine)
                .where(CartLine.id == line_id)
                .values(quantity=CartLine.quantity + amount))
        await session.execute(stmt)

    @staticmethod
    async def get_by_id(line_id: int, session: AsyncSession) -> CartLineDTO | None:
        stmt = select(CartLine).where(CartLine.id == line_id).execution_options(populate_existing=True)
        result = await session.execute(stmt)
        line = result.scalar()
        if line is None:
            return None
        return CartLineDTO.model_validate(line, from_attributes=True)

    @staticmethod
    async def delete_by_id(ledger: str, line_id: int, session: AsyncSession) -> int:
        stmt = delete(CartLine).where(CartLine.ledger == ledger, CartLine.id == line_id)
        result = await session.execute(stmt)
        return result.rowcount

    @staticmethod
    async def delete_all(ledger: str, session: AsyncSession) -> int:
        stmt = delete(CartLine).where(CartLine.ledger == ledger)
        result = await session.execute(stmt)
        return result.rowcount

    @staticmethod
    async def delete_by_item_id(item_id: int, session: AsyncSession) -> int:
        """Delete the item's lines in every ledger (used by the cascading item delete)."""
        stmt = delete(CartLine).where(CartLine.item_id == item_id)
        result = await session.execute(stmt)
        return result.rowcount
