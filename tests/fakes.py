"""Stand-ins for the item directory and the purchase store."""

import asyncio
import uuid
from decimal import Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from shop.clients.base import ItemDirectory, ItemSnapshot
from shop.core.exceptions import (
    DuplicateIdempotencyKey,
    ItemDirectoryError,
    ItemNotFound,
    StockConflict,
)
from shop.crud.base import PurchaseStore
from shop.crud.item import ItemCRUD
from shop.models import Purchase, PurchaseItem


class SessionItemDirectory(ItemDirectory):
    """Answers item lookups from the test database instead of over HTTP."""

    def __init__(self, session: AsyncSession):
        self.item_crud = ItemCRUD(session)

    async def fetch_item(self, item_id: UUID) -> ItemSnapshot:
        item = await self.item_crud.get(item_id)
        if not item:
            raise ItemNotFound(item_id)
        return ItemSnapshot(id=item.id, name=item.name, price=item.price, stock=item.stock)


class UnreachableItemDirectory(ItemDirectory):
    async def fetch_item(self, item_id: UUID) -> ItemSnapshot:
        raise ItemDirectoryError("item service timed out")


class InMemoryCatalog:
    """Item master data shared by the in-memory directory and store."""

    def __init__(self):
        self.items: dict[UUID, dict] = {}

    def add(self, name: str, price: str, stock: int) -> UUID:
        item_id = uuid.uuid4()
        self.items[item_id] = {"name": name, "price": Decimal(price), "stock": stock}
        return item_id


class InMemoryItemDirectory(ItemDirectory):
    def __init__(self, catalog: InMemoryCatalog):
        self.catalog = catalog
        self.calls: list[UUID] = []

    async def fetch_item(self, item_id: UUID) -> ItemSnapshot:
        self.calls.append(item_id)
        data = self.catalog.items.get(item_id)
        if data is None:
            raise ItemNotFound(item_id)
        snapshot = ItemSnapshot(
            id=item_id, name=data["name"], price=data["price"], stock=data["stock"]
        )
        # Yield so concurrent purchases can observe the same stale stock
        await asyncio.sleep(0)
        return snapshot


class InMemoryPurchaseStore(PurchaseStore):
    """Applies the conditional decrement of every line, or none of them."""

    def __init__(self, catalog: InMemoryCatalog):
        self.catalog = catalog
        self.purchases: list[Purchase] = []

    async def create_purchase(self, purchase: Purchase, lines: list[PurchaseItem]) -> Purchase:
        if purchase.idempotency_key and await self.get_by_idempotency_key(
            purchase.user_id, purchase.idempotency_key
        ):
            raise DuplicateIdempotencyKey()

        staged = {item_id: data["stock"] for item_id, data in self.catalog.items.items()}
        for line in lines:
            if staged.get(line.item_id, 0) < line.quantity:
                raise StockConflict(line.item_id)
            staged[line.item_id] -= line.quantity

        for item_id, stock in staged.items():
            self.catalog.items[item_id]["stock"] = stock

        purchase.items.extend(lines)
        self.purchases.append(purchase)
        return purchase

    async def get_user_purchases(self, user_id: UUID) -> list[Purchase]:
        owned = [p for p in self.purchases if p.user_id == user_id]
        return sorted(owned, key=lambda p: p.created_at, reverse=True)

    async def get_by_idempotency_key(self, user_id: UUID, key: str) -> Purchase | None:
        for purchase in self.purchases:
            if purchase.user_id == user_id and purchase.idempotency_key == key:
                return purchase
        return None

