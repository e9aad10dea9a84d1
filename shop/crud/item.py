from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shop.models.item import Item
from shop.schemas.item import ItemCreate, ItemUpdate


class ItemCRUD:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, id: UUID) -> Item | None:
        """Fetch an item by ID, always re-reading stock from the database."""
        return await self.session.get(Item, id, populate_existing=True)

    async def get_multi(self, *, skip: int = 0, limit: int = 20) -> list[Item]:
        stmt = (
            select(Item)
            .order_by(Item.created_at.desc(), Item.id)
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, *, obj_in: ItemCreate) -> Item:
        db_obj = Item(**obj_in.model_dump())
        self.session.add(db_obj)
        await self.session.commit()
        return db_obj

    async def update(self, *, db_obj: Item, obj_in: ItemUpdate) -> Item:
        for field, value in obj_in.model_dump().items():
            setattr(db_obj, field, value)

        await self.session.commit()
        return db_obj

    async def delete(self, *, db_obj: Item) -> None:
        await self.session.delete(db_obj)
        await self.session.commit()
