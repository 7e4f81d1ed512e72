"""
API router for the shared procurement cart.

There is one cart for everybody (see CartLedger); these routes don't need
an admin token.
"""

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from models.cart_line import CartLineDTO
from services.cart import CartLedger
from utils.quantity import parse_id
from web.dependencies import get_session, get_cart_ledger

cart_router = APIRouter(prefix="/api/cart", tags=["cart"])


class AddToCartPayload(BaseModel):
    productId: int | str | None = None
    # Anything that isn't a positive number counts as 1
    quantity: float | int | str | None = None


@cart_router.get("", response_model=list[CartLineDTO])
async def list_cart(
    session: AsyncSession = Depends(get_session),
    cart_ledger: CartLedger = Depends(get_cart_ledger),
):
    return await cart_ledger.list_lines(session)


@cart_router.post("/add", response_model=CartLineDTO, status_code=status.HTTP_201_CREATED)
async def add_to_cart(
    payload: AddToCartPayload,
    session: AsyncSession = Depends(get_session),
    cart_ledger: CartLedger = Depends(get_cart_ledger),
):
    """
    Add a product to the cart. Adding a product that is already in the cart
    increases the existing line instead of creating a second one.
    """
    return await cart_ledger.add_line(parse_id(payload.productId, "productId"), session,
                                      quantity=payload.quantity)


@cart_router.delete("/{line_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_cart_line(
    line_id: int,
    session: AsyncSession = Depends(get_session),
    cart_ledger: CartLedger = Depends(get_cart_ledger),
):
    # Removing a line that is already gone succeeds as well
    await cart_ledger.remove_line(line_id, session)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@cart_router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_cart(
    session: AsyncSession = Depends(get_session),
    cart_ledger: CartLedger = Depends(get_cart_ledger),
):
    await cart_ledger.clear(session)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
