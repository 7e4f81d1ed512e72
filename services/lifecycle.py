import logging

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from exceptions import (
    ItemNotFoundException,
    CompositionEdgeNotFoundException,
    CycleDetectedException,
    ValidationException,
)
from models.composition_edge import CompositionEdgeDTO
from models.item import ItemDTO, ItemAttributesDTO, REQUIRED_FIELDS
from repositories.cart_line import CartLineRepository
from repositories.composition_edge import CompositionEdgeRepository
from repositories.item import ItemRepository
from services.catalog import CatalogService
from services.media import MediaRegistry
from utils.quantity import parse_quantity
from utils.transaction_manager import TransactionManager

logger = logging.getLogger(__name__)


def _parse_attributes(attributes: dict) -> ItemAttributesDTO:
    if not isinstance(attributes, dict):
        raise ValidationException("item attributes must be an object")
    try:
        return ItemAttributesDTO.model_validate(attributes)
    except ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error.get('loc', ())) or None
        message = error.get('msg', 'invalid value').removeprefix('Value error, ')
        raise ValidationException(f"{field}: {message}" if field else message, field=field)


class LifecycleService:
    """
    Multi-record mutations of the catalog, each committed as one unit.

    Every public method opens its own transaction on the given session and
    either commits all of its writes or none of them.
    """

    @staticmethod
    async def create_item(
        attributes: dict,
        session: AsyncSession,
        parent_id: int | None = None,
        quantity=None,
    ) -> ItemDTO:
        """
        Create an item, optionally linked under an existing parent.

        Args:
            attributes: code, name, kind and optional physical properties
            session: Database session
            parent_id: Parent assembly to link the new item into
            quantity: Quantity in the parent; absent means 1, values <= 0 are coerced to 1

        Returns:
            ItemDTO: The created item with its assigned id

        Raises:
            ValidationException: missing or invalid attributes
            ItemNotFoundException: parent_id given but unknown
        """
        dto = _parse_attributes(attributes)
        for field_name in REQUIRED_FIELDS:
            if getattr(dto, field_name) is None:
                raise ValidationException("Code, name, kind required", field=field_name)

        edge_quantity = None
        if parent_id is not None:
            edge_quantity = parse_quantity(quantity, field='quantityInParent')
            if edge_quantity <= 0:
                edge_quantity = 1.0

        async with TransactionManager.atomic(session, "create_item"):
            # A brand-new item has no descendants, so linking it can't close a cycle
            if parent_id is not None and not await ItemRepository.exists(parent_id, session):
                raise ItemNotFoundException(item_id=parent_id)

            item = await ItemRepository.create(dto.model_dump(), session)

            if parent_id is not None:
                await CompositionEdgeRepository.create(CompositionEdgeDTO(
                    parent_id=parent_id,
                    child_id=item.id,
                    quantity=edge_quantity,
                ), session)

        if parent_id is not None:
            logger.info(f"Created {item.kind} {item.id} ({item.code}) under item {parent_id} x{edge_quantity:g}")
        else:
            logger.info(f"Created {item.kind} {item.id} ({item.code})")
        return item

    @staticmethod
    async def add_composition_edge(parent_id: int, child_id: int, session: AsyncSession,
                                   quantity=None) -> CompositionEdgeDTO:
        """
        Link an existing item under an existing parent.

        Raises:
            ValidationException: quantity given and <= 0 (absent means 1)
            ItemNotFoundException: parent or child unknown
            CycleDetectedException: parent == child, or parent is a descendant of child
        """
        edge_quantity = parse_quantity(quantity)
        if edge_quantity <= 0:
            raise ValidationException("quantity must be greater than 0", field='quantity')
        if parent_id == child_id:
            raise CycleDetectedException(parent_id=parent_id, child_id=child_id)

        async with TransactionManager.atomic(session, "add_composition_edge"):
            existing = await ItemRepository.get_existing_ids([parent_id, child_id], session)
            for item_id in (parent_id, child_id):
                if item_id not in existing:
                    raise ItemNotFoundException(item_id=item_id)

            if await CatalogService.reaches(child_id, parent_id, session):
                logger.warning(f"Refused edge {parent_id} -> {child_id}: would create a cycle")
                raise CycleDetectedException(parent_id=parent_id, child_id=child_id)

            duplicates = await CompositionEdgeRepository.count_between(parent_id, child_id, session)
            if duplicates:
                # Permitted, but a well-formed BOM lists each child once per parent
                logger.warning(f"Item {child_id} is already a child of {parent_id} ({duplicates} edge(s)), adding another")

            edge = await CompositionEdgeRepository.create(CompositionEdgeDTO(
                parent_id=parent_id,
                child_id=child_id,
                quantity=edge_quantity,
            ), session)

        logger.info(f"Added edge {edge.id}: {parent_id} -> {child_id} x{edge_quantity:g}")
        return edge

    @staticmethod
    async def update_item(item_id: int, attributes: dict, session: AsyncSession) -> ItemDTO:
        """
        Partially update an item.

        Only fields present in ``attributes`` change. An explicit null or
        empty value clears an optional physical property; code, name and kind
        can be changed but never cleared.

        Raises:
            ValidationException: invalid value or attempt to clear a required field
            ItemNotFoundException: unknown id
        """
        dto = _parse_attributes(attributes)
        values = {field_name: getattr(dto, field_name) for field_name in dto.model_fields_set}
        for field_name in REQUIRED_FIELDS:
            if field_name in values and values[field_name] is None:
                raise ValidationException(f"{field_name} can't be empty", field=field_name)

        async with TransactionManager.atomic(session, "update_item"):
            if values:
                item = await ItemRepository.update(item_id, values, session)
            else:
                item = await ItemRepository.get_by_id(item_id, session)
            if item is None:
                raise ItemNotFoundException(item_id=item_id)

        logger.info(f"Updated item {item_id}: {', '.join(sorted(values)) or 'no changes'}")
        return item

    @staticmethod
    async def delete_item(item_id: int, session: AsyncSession, media_registry: MediaRegistry) -> None:
        """
        Delete an item together with everything that references it.

        In one transaction: the item's edges in both directions, its cart
        lines in every ledger, its media records and finally the item itself.
        If any step fails nothing is deleted. Media files are removed only
        after the commit, since a rollback can't bring a deleted file back.

        Raises:
            ItemNotFoundException: unknown id (also on a second delete of the same id)
        """
        async with TransactionManager.atomic(session, "delete_item"):
            if not await ItemRepository.exists(item_id, session):
                raise ItemNotFoundException(item_id=item_id)

            edges_removed = await CompositionEdgeRepository.delete_for_item(item_id, session)
            lines_removed = await CartLineRepository.delete_by_item_id(item_id, session)
            stored_names = await media_registry.detach_all_for(item_id, session)
            await ItemRepository.delete(item_id, session)

        await media_registry.discard_files(stored_names)
        logger.info(
            f"Deleted item {item_id}: {edges_removed} edge(s), {lines_removed} cart line(s), "
            f"{len(stored_names)} media file(s)"
        )

    @staticmethod
    async def delete_composition_edge(edge_id: int, session: AsyncSession) -> None:
        async with TransactionManager.atomic(session, "delete_composition_edge"):
            edge = await CompositionEdgeRepository.get_by_id(edge_id, session)
            if edge is None:
                raise CompositionEdgeNotFoundException(edge_id=edge_id)
            await CompositionEdgeRepository.delete_by_id(edge_id, session)
        logger.info(f"Deleted composition edge {edge_id} ({edge.parent_id} -> {edge.child_id})")
