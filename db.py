from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator
import logging

from sqlalchemy import event, Engine, inspect
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession, AsyncEngine
from sqlalchemy.pool import StaticPool

"""
Imports of these models are needed to correctly create tables in the database.
For more information see https://stackoverflow.com/questions/7478403/sqlalchemy-classes-across-files
"""
from models.base import Base
from models.item import Item
from models.composition_edge import CompositionEdge
from models.media_reference import MediaReference
from models.cart_line import CartLine

logger = logging.getLogger(__name__)

# HARD DISABLE SQL echo, logs must not be cluttered with SQL statements
sql_echo = False


def _ensure_sqlite_folder(url: str) -> None:
    parsed = make_url(url)
    if not parsed.drivername.startswith("sqlite"):
        return
    database = parsed.database
    if not database or database == ":memory:":
        return
    data_folder = Path(database).parent
    if data_folder.exists() is False:
        data_folder.mkdir(parents=True)


def create_engine_for(url: str) -> AsyncEngine:
    _ensure_sqlite_folder(url)
    parsed = make_url(url)
    if parsed.drivername.startswith("sqlite") and parsed.database in (None, "", ":memory:"):
        # One shared connection, otherwise every connection sees its own empty database
        return create_async_engine(url, echo=sql_echo, poolclass=StaticPool)
    return create_async_engine(url, echo=sql_echo)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@asynccontextmanager
async def get_db_session(session_maker: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    session = None
    try:
        async with session_maker() as async_session:
            session = async_session
            yield session
    finally:
        if session is not None:
            await session.close()


@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    # Composition edges, media references and cart lines rely on enforced foreign keys
    if "sqlite" not in type(dbapi_connection).__module__.lower():
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


async def check_all_tables_exist(engine: AsyncEngine) -> bool:
    async with engine.connect() as conn:
        existing = await conn.run_sync(lambda sync_conn: set(inspect(sync_conn).get_table_names()))
    return all(table.name in existing for table in Base.metadata.tables.values())


async def create_db_and_tables(engine: AsyncEngine) -> None:
    if await check_all_tables_exist(engine):
        logger.debug("All catalog tables present")
        return
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Catalog tables created")
