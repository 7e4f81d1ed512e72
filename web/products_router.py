"""
API router for products (catalog items) and their BOM lines.

Reads are public. Every mutation requires an admin bearer token and goes
through LifecycleService, so multi-record changes commit as one unit.

Catalog exceptions raised here are translated to status codes by the
handler installed in app.create_app (see utils/error_handler.py).
"""

import logging

from fastapi import APIRouter, Body, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from models.composition_edge import ChildEntryDTO, CompositionEdgeDTO
from models.item import ItemDTO
from services.catalog import CatalogService
from services.lifecycle import LifecycleService
from services.media import MediaRegistry
from utils.admin_auth import AdminIdentity
from utils.quantity import parse_id
from web.dependencies import get_session, get_media_registry, require_admin

logger = logging.getLogger(__name__)

products_router = APIRouter(prefix="/api", tags=["products"])

# Body keys that steer the creation, everything else is an item attribute
LINK_KEYS = ("parentId", "quantityInParent")


class BomEdgePayload(BaseModel):
    """Payload for linking an existing item under a parent."""
    parentId: int | str | None = None
    childId: int | str | None = None
    # Parsed by the service: absent means 1, comma decimals are accepted
    quantity: float | int | str | None = None


@products_router.get("/products/root", response_model=list[ItemDTO])
async def list_root_products(session: AsyncSession = Depends(get_session)):
    """Top-level items: every item that is not a child of any other item, ordered by code."""
    return await CatalogService.list_roots(session)


@products_router.get("/products/{item_id}", response_model=ItemDTO)
async def get_product(item_id: int, session: AsyncSession = Depends(get_session)):
    return await CatalogService.get_item(item_id, session)


@products_router.get("/products/{item_id}/children", response_model=list[ChildEntryDTO])
async def list_product_children(item_id: int, session: AsyncSession = Depends(get_session)):
    """
    Direct children of an item with their quantities.

    Unknown ids and leaves both return an empty list.
    """
    return await CatalogService.list_children(item_id, session)


@products_router.post("/products", response_model=ItemDTO, status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: dict = Body(...),
    session: AsyncSession = Depends(get_session),
    admin: AdminIdentity = Depends(require_admin),
):
    """
    Create an item, optionally directly under a parent.

    Request Body:
        {
            "code": "GB-100",
            "name": "Gearbox",
            "kind": "Assembly",
            "mass_kg": 12.5,
            "parentId": 4,
            "quantityInParent": 2
        }

    Returns:
        201: The created item
        400: Missing code, name or kind, or an invalid value
        401/403: No admin token
        404: parentId does not exist
    """
    attributes = {key: value for key, value in payload.items() if key not in LINK_KEYS}
    parent_id = payload.get("parentId")
    if parent_id in (None, ""):
        parent_id = None
    else:
        parent_id = parse_id(parent_id, "parentId")

    item = await LifecycleService.create_item(
        attributes,
        session,
        parent_id=parent_id,
        quantity=payload.get("quantityInParent"),
    )
    logger.info(f"Admin {admin.admin_id} created item {item.id}")
    return item


@products_router.put("/products/{item_id}", response_model=ItemDTO)
async def update_product(
    item_id: int,
    payload: dict = Body(...),
    session: AsyncSession = Depends(get_session),
    admin: AdminIdentity = Depends(require_admin),
):
    """Partial update: only the keys present in the body change."""
    item = await LifecycleService.update_item(item_id, payload, session)
    logger.info(f"Admin {admin.admin_id} updated item {item_id}")
    return item


@products_router.delete("/products/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    item_id: int,
    session: AsyncSession = Depends(get_session),
    media_registry: MediaRegistry = Depends(get_media_registry),
    admin: AdminIdentity = Depends(require_admin),
):
    """
    Delete an item with its BOM lines (both directions), cart lines and media.

    Children of the item are not deleted; those that lose their last parent
    become roots.
    """
    await LifecycleService.delete_item(item_id, session, media_registry)
    logger.info(f"Admin {admin.admin_id} deleted item {item_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@products_router.post("/bom", response_model=CompositionEdgeDTO, status_code=status.HTTP_201_CREATED)
async def add_bom_line(
    payload: BomEdgePayload,
    session: AsyncSession = Depends(get_session),
    admin: AdminIdentity = Depends(require_admin),
):
    """
    Link an existing child under an existing parent.

    Returns:
        201: The new edge
        400: Invalid quantity, self-reference or a link that would create a cycle
        404: Parent or child does not exist
    """
    edge = await LifecycleService.add_composition_edge(
        parse_id(payload.parentId, "parentId"),
        parse_id(payload.childId, "childId"),
        session,
        quantity=payload.quantity,
    )
    logger.info(f"Admin {admin.admin_id} added BOM line {edge.id}")
    return edge


@products_router.delete("/bom/{edge_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_bom_line(
    edge_id: int,
    session: AsyncSession = Depends(get_session),
    admin: AdminIdentity = Depends(require_admin),
):
    await LifecycleService.delete_composition_edge(edge_id, session)
    logger.info(f"Admin {admin.admin_id} deleted BOM line {edge_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
