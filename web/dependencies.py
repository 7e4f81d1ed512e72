"""
FastAPI dependencies shared by the routers.

The engine, the media registry and the cart ledger are created once by the
application factory and kept on ``app.state``; requests get them from there.
"""

from typing import AsyncIterator

from fastapi import Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_db_session
from services.cart import CartLedger
from services.media import MediaRegistry
from utils.admin_auth import AdminIdentity, verify_admin, extract_bearer_token


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    async with get_db_session(request.app.state.session_maker) as session:
        yield session


def get_media_registry(request: Request) -> MediaRegistry:
    return request.app.state.media_registry


def get_cart_ledger(request: Request) -> CartLedger:
    return request.app.state.cart_ledger


async def require_admin(authorization: str | None = Header(default=None)) -> AdminIdentity:
    """
    Guard for write operations on the catalog.

    Raises:
        UnauthorizedException: missing, malformed or expired bearer token
        ForbiddenException: token is valid but not an admin token
    """
    return verify_admin(extract_bearer_token(authorization))
