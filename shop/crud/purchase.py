import logging
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shop.core.exceptions import DuplicateIdempotencyKey, StockConflict
from shop.crud.base import PurchaseStore
from shop.models.item import Item
from shop.models.purchase import Purchase
from shop.models.purchase_item import PurchaseItem

logger = logging.getLogger(__name__)


class PurchaseCRUD(PurchaseStore):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_purchase(
        self, purchase: Purchase, lines: list[PurchaseItem]
    ) -> Purchase:
        idempotency_key = purchase.idempotency_key

        try:
            self.session.add(purchase)
            await self.session.flush()

            for line in lines:
                purchase.items.append(line)
                await self.session.flush()

                # Compare-and-decrement: the row lock taken by this UPDATE
                # serialises concurrent purchases of the same item.
                result = await self.session.execute(
                    update(Item)
                    .where(Item.id == line.item_id, Item.stock >= line.quantity)
                    .values(stock=Item.stock - line.quantity)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 0:
                    raise StockConflict(line.item_id)

            await self.session.commit()

        except IntegrityError as e:
            await self.session.rollback()
            if idempotency_key and "idempotency_key" in str(e.orig):
                raise DuplicateIdempotencyKey() from e
            raise

        except Exception:
            await self.session.rollback()
            raise

        logger.debug(f"Purchase {purchase.id} committed with {len(lines)} line(s)")
        return purchase

    async def get_user_purchases(self, user_id: UUID) -> list[Purchase]:
        result = await self.session.execute(
            select(Purchase)
            .where(Purchase.user_id == user_id)
            .order_by(Purchase.created_at.desc(), Purchase.id)
        )
        return list(result.scalars().all())

    async def get_by_idempotency_key(self, user_id: UUID, key: str) -> Purchase | None:
        result = await self.session.execute(
            select(Purchase).where(
                Purchase.user_id == user_id,
                Purchase.idempotency_key == key,
            )
        )
        return result.scalar_one_or_none()
