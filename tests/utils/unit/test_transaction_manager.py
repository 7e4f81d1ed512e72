"""
Unit tests for utils/transaction_manager.py.
"""

import pytest
from sqlalchemy import text

from exceptions import ConflictException
from repositories.item import ItemRepository
from utils.transaction_manager import TransactionManager


class TestAtomic:

    @pytest.mark.asyncio
    async def test_commit_on_success(self, test_session):
        async with TransactionManager.atomic(test_session, "create"):
            item = await ItemRepository.create({"code": "P", "name": "P", "kind": "Part"}, test_session)

        await test_session.rollback()
        assert await ItemRepository.exists(item.id, test_session)

    @pytest.mark.asyncio
    async def test_rollback_on_error(self, test_session):
        with pytest.raises(RuntimeError):
            async with TransactionManager.atomic(test_session, "create"):
                item = await ItemRepository.create({"code": "P", "name": "P", "kind": "Part"}, test_session)
                raise RuntimeError("boom")

        assert not await ItemRepository.exists(item.id, test_session)

    @pytest.mark.asyncio
    async def test_integrity_error_becomes_conflict(self, test_session):
        with pytest.raises(ConflictException) as exc_info:
            async with TransactionManager.atomic(test_session, "add_edge"):
                # Foreign keys are enforced: item 999 doesn't exist
                await test_session.execute(text(
                    "INSERT INTO composition_edges (parent_id, child_id, quantity) VALUES (998, 999, 1)"
                ))

        assert exc_info.value.operation == "add_edge"
