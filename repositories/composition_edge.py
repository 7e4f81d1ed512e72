"""
Composition Edge Repository

Handles database operations for BOM lines (parent contains child, quantity N).
"""

import logging

from sqlalchemy import select, delete, or_, func
from sqlalchemy.ext.asyncio import AsyncSession

from models.composition_edge import CompositionEdge, CompositionEdgeDTO, ChildEntryDTO
from models.item import Item

logger = logging.getLogger(__name__)


class CompositionEdgeRepository:
    """Repository for composition edge database operations."""

    @staticmethod
    async def get_by_id(edge_id: int, session: AsyncSession) -> CompositionEdgeDTO | None:
        stmt = select(CompositionEdge).where(CompositionEdge.id == edge_id)
        result = await session.execute(stmt)
        edge = result.scalar()
        if edge is None:
            return None
        return CompositionEdgeDTO.model_validate(edge, from_attributes=True)

    @staticmethod
    async def get_children(parent_id: int, session: AsyncSession) -> list[ChildEntryDTO]:
        """
        Get the BOM of an assembly: its edges joined with the child items.

        Args:
            parent_id: Parent item ID
            session: Database session

        Returns:
            list[ChildEntryDTO]: Sorted by child code, then edge id.
            Empty if the item has no children or does not exist.
        """
        stmt = (
            select(CompositionEdge.id, CompositionEdge.quantity, Item)
            .join(Item, Item.id == CompositionEdge.child_id)
            .where(CompositionEdge.parent_id == parent_id)
            .order_by(Item.code, CompositionEdge.id)
        )
        result = await session.execute(stmt)
        return [
            ChildEntryDTO(
                edge_id=edge_id,
                quantity=quantity,
                id=child.id,
                code=child.code,
                name=child.name,
                kind=child.kind,
                mass_kg=child.mass_kg,
                length_mm=child.length_mm,
                width_mm=child.width_mm,
                height_mm=child.height_mm,
            )
            for edge_id, quantity, child in result.all()
        ]

    @staticmethod
    async def get_child_ids(parent_ids: set[int], session: AsyncSession) -> set[int]:
        """
        Get the direct children of several items in one query.

        Used level by level when walking the graph, which keeps a descendant
        walk at one query per depth level instead of one per node.
        """
        if not parent_ids:
            return set()
        stmt = (select(CompositionEdge.child_id)
                .where(CompositionEdge.parent_id.in_(parent_ids))
                .distinct())
        result = await session.execute(stmt)
        return set(result.scalars().all())

    @staticmethod
    async def count_between(parent_id: int, child_id: int, session: AsyncSession) -> int:
        stmt = (select(func.count())
                .select_from(CompositionEdge)
                .where(CompositionEdge.parent_id == parent_id,
                       CompositionEdge.child_id == child_id))
        result = await session.execute(stmt)
        return result.scalar()

    @staticmethod
    async def create(edge_dto: CompositionEdgeDTO, session: AsyncSession) -> CompositionEdgeDTO:
        edge = CompositionEdge(
            parent_id=edge_dto.parent_id,
            child_id=edge_dto.child_id,
            quantity=edge_dto.quantity,
        )
        session.add(edge)
        await session.flush()
        return CompositionEdgeDTO.model_validate(edge, from_attributes=True)

    @staticmethod
    async def delete_by_id(edge_id: int, session: AsyncSession) -> int:
        stmt = delete(CompositionEdge).where(CompositionEdge.id == edge_id)
        result = await session.execute(stmt)
        return result.rowcount

    @staticmethod
    async def delete_for_item(item_id: int, session: AsyncSession) -> int:
        """
        Delete every edge where the item is parent or child.

        Returns:
            int: Number of deleted edges
        """
        stmt = delete(CompositionEdge).where(
            or_(CompositionEdge.parent_id == item_id,
                CompositionEdge.child_id == item_id)
        )
        result = await session.execute(stmt)
        deleted_count = result.rowcount
        logger.debug(f"Deleted {deleted_count} composition edges of item {item_id}")
        return deleted_count
