import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from shop.core.exceptions import ItemNotFound
from shop.crud.item import ItemCRUD
from shop.models.item import Item
from shop.schemas.item import ItemCreate, ItemUpdate

logger = logging.getLogger(__name__)


class ItemService:

    def __init__(self, session: AsyncSession):
        self.item_crud = ItemCRUD(session)

    async def create_item(self, item_in: ItemCreate) -> Item:
        item = await self.item_crud.create(obj_in=item_in)
        logger.info(f"Item created: {item.id} | price {item.price} | stock {item.stock}")
        return item

    async def list_items(self, skip: int = 0, limit: int = 20) -> list[Item]:
        return await self.item_crud.get_multi(skip=skip, limit=limit)

    async def get_item(self, item_id: UUID) -> Item:
        item = await self.item_crud.get(item_id)

        if not item:
            raise ItemNotFound(item_id)

        return item

    async def update_item(self, item_id: UUID, item_in: ItemUpdate) -> Item:
        item = await self.get_item(item_id)
        item = await self.item_crud.update(db_obj=item, obj_in=item_in)
        logger.info(f"Item updated: {item.id}")
        return item

    async def delete_item(self, item_id: UUID) -> None:
        item = await self.get_item(item_id)
        await self.item_crud.delete(db_obj=item)
        logger.info(f"Item deleted: {item_id}")
