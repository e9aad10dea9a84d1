import logging
import uuid
from collections import defaultdict
from decimal import Decimal
from typing import Iterable
from uuid import UUID

from shop.clients.base import ItemDirectory, ItemSnapshot
from shop.core.exceptions import (
    DuplicateIdempotencyKey,
    InsufficientStockError,
    ItemNotFound,
    PurchaseItemNotFound,
    StockConflict,
)
from shop.crud.base import PurchaseStore
from shop.db.base import utcnow
from shop.models.purchase import Purchase
from shop.models.purchase_item import PurchaseItem
from shop.schemas.purchase import PurchaseItemRead, PurchaseItemRequest, PurchaseRead

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


class PurchaseService:
    """
    Turns a purchase request into a priced, stock-checked, durably recorded
    purchase, or fails leaving nothing behind.

    The stock check against the directory snapshot only rejects obviously
    insufficient requests early. The conditional decrement inside the store
    transaction is what actually keeps stock from going negative when
    several buyers race for the same item.
    """

    def __init__(self, store: PurchaseStore, item_directory: ItemDirectory):
        self.store = store
        self.item_directory = item_directory

    async def create_purchase(
        self,
        *,
        user_id: UUID,
        items: list[PurchaseItemRequest],
        idempotency_key: str | None = None,
    ) -> tuple[PurchaseRead, bool]:
        """
        Returns the purchase and whether it was created by this call
        (False when an earlier purchase with the same idempotency key is
        replayed).
        """
        # A blank header means no key
        idempotency_key = idempotency_key or None

        if idempotency_key:
            existing = await self.store.get_by_idempotency_key(user_id, idempotency_key)
            if existing:
                logger.info(f"Purchase {existing.id} replayed for idempotency key {idempotency_key}")
                return await self._present(existing), False

        # 1. Current price and stock of every requested item
        snapshots = await self._fetch_snapshots(line.item_id for line in items)

        # 2. Advisory pre-check, summed per item
        requested: dict[UUID, int] = defaultdict(int)
        for line in items:
            requested[line.item_id] += line.quantity

        for item_id, quantity in requested.items():
            available = snapshots[item_id].stock
            if quantity > available:
                logger.warning(
                    f"Purchase rejected: item {item_id} requested {quantity}, available {available}"
                )
                raise InsufficientStockError(item_id)

        # 3. Price from the snapshot; it is stored with the line and never recalculated
        total = Decimal("0.00")
        lines = []
        for position, line in enumerate(items):
            price = snapshots[line.item_id].price
            total += price * line.quantity
            lines.append(
                PurchaseItem(
                    id=uuid.uuid4(),
                    item_id=line.item_id,
                    quantity=line.quantity,
                    price_at_purchase=price,
                    position=position,
                )
            )

        purchase = Purchase(
            id=uuid.uuid4(),
            user_id=user_id,
            total_amount=total.quantize(CENTS),
            idempotency_key=idempotency_key,
            created_at=utcnow(),
            items=[],
        )

        # 4. Insert purchase and lines, decrement stock, all in one transaction
        try:
            purchase = await self.store.create_purchase(purchase, lines)

        except StockConflict as e:
            logger.warning(
                f"Purchase rolled back: stock of item {e.item_id} changed concurrently"
            )
            raise InsufficientStockError(e.item_id) from e

        except DuplicateIdempotencyKey:
            existing = await self.store.get_by_idempotency_key(user_id, idempotency_key)
            if existing is None:
                raise
            logger.info(f"Concurrent duplicate of purchase {existing.id} discarded")
            return await self._present(existing), False

        logger.info(
            f"Purchase {purchase.id} created for user {user_id} | "
            f"{len(lines)} line(s) | total {purchase.total_amount}"
        )

        # 5. Enrich with the names observed in step 1
        names = {item_id: snap.name for item_id, snap in snapshots.items()}
        return self._to_read(purchase, names), True

    async def get_purchase_history(self, user_id: UUID) -> list[PurchaseRead]:
        """
        All purchases of the user. Names are looked up live, so they follow
        later renames; prices come from the stored snapshot.
        """
        purchases = await self.store.get_user_purchases(user_id)

        names: dict[UUID, str | None] = {}
        for purchase in purchases:
            await self._resolve_names(purchase, names)

        return [self._to_read(purchase, names) for purchase in purchases]

    # --- helpers ---

    async def _fetch_snapshots(self, item_ids: Iterable[UUID]) -> dict[UUID, ItemSnapshot]:
        snapshots: dict[UUID, ItemSnapshot] = {}
        for item_id in item_ids:
            if item_id in snapshots:
                continue
            try:
                snapshots[item_id] = await self.item_directory.fetch_item(item_id)
            except ItemNotFound as e:
                logger.warning(f"Purchase rejected: item {item_id} not found")
                raise PurchaseItemNotFound(item_id) from e
        return snapshots

    async def _resolve_names(self, purchase: Purchase, names: dict[UUID, str | None]) -> None:
        for line in purchase.items:
            if line.item_id in names:
                continue
            try:
                names[line.item_id] = (await self.item_directory.fetch_item(line.item_id)).name
            except ItemNotFound:
                logger.info(f"Item {line.item_id} of purchase {purchase.id} is no longer in the catalog")
                names[line.item_id] = None

    async def _present(self, purchase: Purchase) -> PurchaseRead:
        names: dict[UUID, str | None] = {}
        await self._resolve_names(purchase, names)
        return self._to_read(purchase, names)

    @staticmethod
    def _to_read(purchase: Purchase, names: dict[UUID, str | None]) -> PurchaseRead:
        return PurchaseRead(
            id=purchase.id,
            user_id=purchase.user_id,
            total_amount=purchase.total_amount,
            created_at=purchase.created_at,
            items=[
                PurchaseItemRead(
                    item_id=line.item_id,
                    name=names.get(line.item_id),
                    quantity=line.quantity,
                    price_at_purchase=line.price_at_purchase,
                    line_total=(line.price_at_purchase * line.quantity).quantize(CENTS),
                )
                for line in purchase.items
            ],
        )
