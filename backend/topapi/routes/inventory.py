"""
Topapi Backend: Inventory Route Handlers
==========================================

What:  CRUD for /api/inventory.
Who:   Called by the frontend stock list, item editor and search box.

Access:
    GET            any authenticated principal
    POST/PATCH/DELETE  admin only
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query

from topapi.dependencies import get_inventory_service, get_page, require_principal
from topapi.pagination import PageRequest
from topapi.responses import success_response
from topapi.schemas.common import (
    ERROR_RESPONSES,
    Envelope,
    MessageEnvelope,
    PageEnvelope,
    request_body,
)
from topapi.schemas.inventory import InventoryItemCreate, InventoryItemRecord, InventoryItemUpdate
from topapi.services.inventory_service import InventoryService
from topapi.services.token_verifier import Principal

router = APIRouter(prefix="/api/inventory", tags=["Inventory"], responses=ERROR_RESPONSES)


@router.get(
    "",
    response_model=PageEnvelope[InventoryItemRecord],
    summary="List inventory items",
    description="Newest first. `search` matches item names case-insensitively.",
)
async def list_inventory_items(
    search: Optional[str] = Query(default=None, description="Substring of the item name"),
    department: Optional[str] = Query(default=None),
    category: Optional[str] = Query(default=None),
    page: PageRequest = Depends(get_page),
    principal: Principal = Depends(require_principal),
    service: InventoryService = Depends(get_inventory_service),
):
    rows, pagination = await service.list(
        page,
        {"search": search, "department": department, "category": category},
        principal,
    )
    return success_response(rows, pagination=pagination)


@router.get(
    "/{item_id}",
    response_model=Envelope[InventoryItemRecord],
    summary="Get an inventory item",
)
async def get_inventory_item(
    item_id: str,
    principal: Principal = Depends(require_principal),
    service: InventoryService = Depends(get_inventory_service),
):
    return success_response(await service.get(item_id, principal))


@router.post(
    "",
    response_model=Envelope[InventoryItemRecord],
    openapi_extra=request_body(InventoryItemCreate),
    status_code=201,
    summary="Create an inventory item (admin)",
)
async def create_inventory_item(
    payload: Any = Body(default=None),
    principal: Principal = Depends(require_principal),
    service: InventoryService = Depends(get_inventory_service),
):
    row = await service.create(payload, principal)
    return success_response(row, message="Inventory item created successfully", status_code=201)


@router.patch(
    "/{item_id}",
    response_model=Envelope[InventoryItemRecord],
    openapi_extra=request_body(InventoryItemUpdate),
    summary="Update an inventory item (admin)",
)
async def update_inventory_item(
    item_id: str,
    payload: Any = Body(default=None),
    principal: Principal = Depends(require_principal),
    service: InventoryService = Depends(get_inventory_service),
):
    row = await service.update(item_id, payload, principal)
    return success_response(row, message="Inventory item updated successfully")


@router.delete(
    "/{item_id}",
    response_model=MessageEnvelope,
    summary="Delete an inventory item (admin)",
)
async def delete_inventory_item(
    item_id: str,
    principal: Principal = Depends(require_principal),
    service: InventoryService = Depends(get_inventory_service),
):
    await service.delete(item_id, principal)
    return success_response(message="Inventory item deleted successfully", include_data=False)
