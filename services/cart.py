import logging

from sqlalchemy.ext.asyncio import AsyncSession

import config
from exceptions import ItemNotFoundException, ValidationException
from models.cart_line import CartLineDTO
from repositories.cart_line import CartLineRepository
from repositories.item import ItemRepository
from utils.quantity import parse_quantity
from utils.transaction_manager import TransactionManager

logger = logging.getLogger(__name__)


class CartLedger:
    """
    A named list of (item, quantity) lines for procurement.

    There is no per-user cart: the application creates one ledger (named by
    config.CART_LEDGER_NAME) and hands that instance to every request.
    Each item appears at most once per ledger; adding it again grows the
    existing line.
    """

    def __init__(self, name: str = config.CART_LEDGER_NAME):
        self.name = name

    async def add_line(self, item_id: int, session: AsyncSession, quantity=None) -> CartLineDTO:
        """
        Add an item to the ledger or increase its existing line.

        Args:
            item_id: Item to add
            session: Database session
            quantity: Amount to add; missing, non-numeric or <= 0 counts as 1

        Returns:
            CartLineDTO: The line after the change

        Raises:
            ItemNotFoundException: unknown item
        """
        try:
            amount = parse_quantity(quantity)
        except ValidationException:
            amount = 1.0
        if amount <= 0:
            amount = 1.0

        async with TransactionManager.atomic(session, "cart_add_line"):
            if not await ItemRepository.exists(item_id, session):
                raise ItemNotFoundException(item_id=item_id)

            line = await CartLineRepository.get_by_item(self.name, item_id, session)
            if line is None:
                line = await CartLineRepository.create(CartLineDTO(
                    ledger=self.name,
                    item_id=item_id,
                    quantity=amount,
                ), session)
                logger.info(f"Cart '{self.name}': added item {item_id} x{amount:g}")
            else:
                await CartLineRepository.increase_quantity(line.id, amount, session)
                line = await CartLineRepository.get_by_id(line.id, session)
                logger.info(f"Cart '{self.name}': item {item_id} now x{line.quantity:g} (+{amount:g})")

        return line

    async def list_lines(self, session: AsyncSession) -> list[CartLineDTO]:
        return await CartLineRepository.get_all(self.name, session)

    async def remove_line(self, line_id: int, session: AsyncSession) -> bool:
        """
        Remove one line. Removing a line that doesn't exist is not an error.

        Returns:
            bool: True if a line was removed
        """
        async with TransactionManager.atomic(session, "cart_remove_line"):
            removed = await CartLineRepository.delete_by_id(self.name, line_id, session)
        if removed:
            logger.info(f"Cart '{self.name}': removed line {line_id}")
        else:
            logger.debug(f"Cart '{self.name}': line {line_id} not present, nothing removed")
        return bool(removed)

    async def clear(self, session: AsyncSession) -> int:
        async with TransactionManager.atomic(session, "cart_clear"):
            removed = await CartLineRepository.delete_all(self.name, session)
        logger.info(f"Cart '{self.name}': cleared {removed} line(s)")
        return removed
