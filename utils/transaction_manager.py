import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncGenerator

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from exceptions import ConflictException

logger = logging.getLogger(__name__)


class TransactionManager:
    """
    Utility class for running a group of storage mutations as one unit:
    commit when the block finishes, roll back when anything inside raises.
    """

    # Transactions slower than this are logged, never aborted
    SLOW_TRANSACTION_SECONDS = 5

    @staticmethod
    @asynccontextmanager
    async def atomic(session: AsyncSession, operation: str = "transaction") -> AsyncGenerator[AsyncSession, None]:
        """
        Context manager for atomic database transactions.

        Integrity violations surfacing at flush or commit time mean another
        request changed the rows this one relied on (e.g. an item deleted
        while an edge to it was being added) and are raised as
        ConflictException. Everything else is re-raised unchanged.

        Usage:
            async with TransactionManager.atomic(session, "delete_item"):
                await ItemRepository.delete(item_id, session)
        """
        transaction_start = datetime.now()
        logger.debug(f"[{operation}] Transaction started")
        try:
            yield session
            await session.commit()
        except IntegrityError as e:
            await TransactionManager._rollback(session, operation, e)
            raise ConflictException(operation, str(e.orig) if e.orig is not None else str(e)) from e
        except Exception as e:
            await TransactionManager._rollback(session, operation, e)
            raise

        duration = (datetime.now() - transaction_start).total_seconds()
        if duration > TransactionManager.SLOW_TRANSACTION_SECONDS:
            logger.warning(f"[{operation}] Slow transaction: {duration:.2f}s")
        logger.debug(f"[{operation}] Transaction committed in {duration:.3f}s")

    @staticmethod
    async def _rollback(session: AsyncSession, operation: str, cause: Exception) -> None:
        try:
            await session.rollback()
            logger.info(f"[{operation}] Transaction rolled back due to error: {type(cause).__name__}: {cause}")
        except Exception as rollback_error:
            logger.critical(f"[{operation}] Failed to rollback transaction: {rollback_error}")
