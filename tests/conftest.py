"""
Pytest configuration and fixtures for tests.

This file is automatically loaded by pytest and provides shared fixtures
and configuration for all tests.
"""

import os
import sys
import tempfile

import pytest
import pytest_asyncio

# Settings are read once when config is imported, so they have to be in
# place before any project module is loaded
_test_dir = tempfile.mkdtemp(prefix="catalog-tests-")
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("UPLOAD_ROOT", os.path.join(_test_dir, "uploads"))
os.environ.setdefault("LOG_DIR", os.path.join(_test_dir, "logs"))
os.environ.setdefault("JWT_SECRET", "test_jwt_secret_0123456789abcdef")
os.environ.setdefault("STORAGE_LIMIT_BYTES", str(1024 * 1024))

# Add parent directory to Python path so tests can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from db import create_engine_for, create_session_maker, create_db_and_tables
from models.item import ItemDTO
from services.cart import CartLedger
from services.lifecycle import LifecycleService
from services.media import MediaRegistry
from utils.file_storage import LocalFileStorage


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine (in-memory SQLite, foreign keys on)."""
    engine = create_engine_for("sqlite+aiosqlite:///:memory:")
    await create_db_and_tables(engine)

    yield engine

    # Cleanup
    await engine.dispose()


@pytest_asyncio.fixture
async def test_session(test_engine):
    """Create test database session."""
    async_session_maker = create_session_maker(test_engine)

    async with async_session_maker() as session:
        yield session
        await session.rollback()


# ============================================================================
# Storage Fixtures
# ============================================================================

@pytest.fixture
def file_storage(tmp_path):
    """File storage in a per-test temporary upload root."""
    storage = LocalFileStorage(tmp_path / "uploads", "/uploads")
    storage.ensure_root()
    return storage


@pytest.fixture
def media_registry(file_storage):
    """Media registry with a small 1000 byte quota."""
    return MediaRegistry(file_storage, quota_bytes=1000)


@pytest.fixture
def cart_ledger():
    return CartLedger("shared")


# ============================================================================
# Catalog Fixtures
# ============================================================================

@pytest.fixture
def make_item(test_session):
    """
    Factory creating committed items through the lifecycle service.

    Usage:
        gearbox = await make_item("GB-1", kind="Assembly")
        shaft = await make_item("SH-1", parent=gearbox, quantity=2)
    """
    async def _make_item(code: str, kind: str = "Part", parent: ItemDTO | None = None,
                         quantity=None, **attributes) -> ItemDTO:
        return await LifecycleService.create_item(
            {"code": code, "name": f"{code} name", "kind": kind, **attributes},
            test_session,
            parent_id=parent.id if parent is not None else None,
            quantity=quantity,
        )

    return _make_item


@pytest_asyncio.fixture
async def abc_chain(make_item):
    """
    Items A, B, C with edges A -> B (x2) and B -> C (x3).

    Returns:
        tuple[ItemDTO, ItemDTO, ItemDTO]
    """
    a = await make_item("A", kind="Assembly")
    b = await make_item("B", kind="Assembly", parent=a, quantity=2)
    c = await make_item("C", parent=b, quantity=3)
    return a, b, c
