import logging

from sqlalchemy.ext.asyncio import AsyncSession

from exceptions import ItemNotFoundException
from models.composition_edge import ChildEntryDTO
from models.item import ItemDTO
from repositories.composition_edge import CompositionEdgeRepository
from repositories.item import ItemRepository

logger = logging.getLogger(__name__)


class CatalogService:
    """
    Read-only structural queries over items and composition edges.

    Nothing here mutates state. Every call works on one level of the graph;
    expanding a full tree is left to clients calling list_children repeatedly.
    """

    @staticmethod
    async def list_roots(session: AsyncSession) -> list[ItemDTO]:
        """
        All items without an incoming composition edge, ordered by code.

        Isolated items (no edges at all) are roots too.
        """
        return await ItemRepository.get_roots(session)

    @staticmethod
    async def get_item(item_id: int, session: AsyncSession) -> ItemDTO:
        item = await ItemRepository.get_by_id(item_id, session)
        if item is None:
            raise ItemNotFoundException(item_id=item_id)
        return item

    @staticmethod
    async def list_children(parent_id: int, session: AsyncSession) -> list[ChildEntryDTO]:
        """
        Direct children of an item with their quantities.

        Returns an empty list (not an error) for leaves and for unknown ids;
        callers that need the parent to exist check it with get_item.
        """
        return await CompositionEdgeRepository.get_children(parent_id, session)

    @staticmethod
    async def reaches(start_id: int, target_id: int, session: AsyncSession) -> bool:
        """
        Check whether target_id is start_id itself or one of its descendants.

        Breadth-first over child edges, one query per depth level. The
        visited set keeps the walk finite even if a cycle slipped into the
        stored graph.

        Example:
            A contains B, B contains C:
            >>> await CatalogService.reaches(A, C, session)
            True
            >>> await CatalogService.reaches(C, A, session)
            False
        """
        if start_id == target_id:
            return True

        visited = {start_id}
        frontier = {start_id}
        depth = 0
        while frontier:
            children = await CompositionEdgeRepository.get_child_ids(frontier, session)
            if target_id in children:
                logger.debug(f"Item {target_id} reachable from {start_id} at depth {depth + 1}")
                return True
            frontier = children - visited
            visited |= frontier
            depth += 1
        return False
