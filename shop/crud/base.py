from abc import ABC, abstractmethod
from uuid import UUID

from shop.models.purchase import Purchase
from shop.models.purchase_item import PurchaseItem


class PurchaseStore(ABC):
    """Persistence contract the purchase orchestrator depends on."""

    @abstractmethod
    async def create_purchase(
        self, purchase: Purchase, lines: list[PurchaseItem]
    ) -> Purchase:
        """
        Record the purchase with the given lines and decrement stock, all or nothing.

        For every line the line row is written and then
        ``stock = stock - quantity`` is applied only where
        ``stock >= quantity``. Raises StockConflict when that affects no row
        and DuplicateIdempotencyKey when the user already has a purchase
        under the same idempotency key. Nothing persists when either is
        raised.
        """
        pass

    @abstractmethod
    async def get_user_purchases(self, user_id: UUID) -> list[Purchase]:
        """All purchases of a user with their lines, newest first."""
        pass

    @abstractmethod
    async def get_by_idempotency_key(self, user_id: UUID, key: str) -> Purchase | None:
        """The user's purchase recorded under this idempotency key, if any."""
        pass
