from sqlalchemy import select, delete, exists
from sqlalchemy.ext.asyncio import AsyncSession

from models.composition_edge import CompositionEdge
from models.item import Item, ItemDTO


class ItemRepository:

    @staticmethod
    async def get_by_id(item_id: int, session: AsyncSession) -> ItemDTO | None:
        stmt = select(Item).where(Item.id == item_id)
        item = await session.execute(stmt)
        item = item.scalar()
        if item is None:
            return None
        return ItemDTO.model_validate(item, from_attributes=True)

    @staticmethod
    async def exists(item_id: int, session: AsyncSession) -> bool:
        stmt = select(exists().where(Item.id == item_id))
        result = await session.execute(stmt)
        return bool(result.scalar())

    @staticmethod
    async def get_existing_ids(item_ids: list[int], session: AsyncSession) -> set[int]:
        if not item_ids:
            return set()
        stmt = select(Item.id).where(Item.id.in_(item_ids))
        result = await session.execute(stmt)
        return set(result.scalars().all())

    @staticmethod
    async def get_roots(session: AsyncSession) -> list[ItemDTO]:
        """
        Items that are not the child endpoint of any composition edge.

        Computed on every call from the edges table (anti-join), so there is
        no stored root flag that could go stale.
        """
        has_parent = exists().where(CompositionEdge.child_id == Item.id)
        stmt = (select(Item)
                .where(~has_parent)
                .order_by(Item.code, Item.id))
        result = await session.execute(stmt)
        return [ItemDTO.model_validate(item, from_attributes=True) for item in result.scalars().all()]

    @staticmethod
    async def create(values: dict, session: AsyncSession) -> ItemDTO:
        item = Item(**values)
        session.add(item)
        await session.flush()
        return ItemDTO.model_validate(item, from_attributes=True)

    @staticmethod
    async def update(item_id: int, values: dict, session: AsyncSession) -> ItemDTO | None:
        stmt = select(Item).where(Item.id == item_id)
        item = await session.execute(stmt)
        item = item.scalar()
        if item is None:
            return None
        for field_name, value in values.items():
            setattr(item, field_name, value)
        await session.flush()
        return ItemDTO.model_validate(item, from_attributes=True)

    @staticmethod
    async def delete(item_id: int, session: AsyncSession) -> int:
        stmt = delete(Item).where(Item.id == item_id)
        result = await session.execute(stmt)
        return result.rowcount
