import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from starlette import status

from shop.core.deps import Identity, get_current_identity, get_service
from shop.schemas.item import ItemCreate, ItemRead, ItemUpdate
from shop.services.item_service import ItemService

# Initialize logger for audit events
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/items", tags=["items"])


# PUBLIC READS

@router.get("", response_model=List[ItemRead])
async def list_items(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    service: ItemService = Depends(get_service(ItemService)),
):
    """Public catalog, newest first."""
    return await service.list_items(skip=skip, limit=limit)


@router.get("/{item_id}", response_model=ItemRead)
async def get_item(
    item_id: UUID,
    service: ItemService = Depends(get_service(ItemService)),
):
    """Public lookup; also what the purchase service calls to price an order."""
    return await service.get_item(item_id)


# AUTHENTICATED WRITES

@router.post("", response_model=ItemRead, status_code=status.HTTP_201_CREATED)
async def create_item(
    body: ItemCreate,
    identity: Identity = Depends(get_current_identity),
    service: ItemService = Depends(get_service(ItemService)),
):
    item = await service.create_item(body)
    logger.info(f"AUDIT: Item {item.id} created by {identity.email}")
    return item


@router.put("/{item_id}", response_model=ItemRead)
async def update_item(
    item_id: UUID,
    body: ItemUpdate,
    identity: Identity = Depends(get_current_identity),
    service: ItemService = Depends(get_service(ItemService)),
):
    item = await service.update_item(item_id, body)
    logger.info(f"AUDIT: Item {item_id} updated by {identity.email}")
    return item


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
    item_id: UUID,
    identity: Identity = Depends(get_current_identity),
    service: ItemService = Depends(get_service(ItemService)),
):
    await service.delete_item(item_id)
    logger.warning(f"AUDIT: Item {item_id} deleted by {identity.email}")
