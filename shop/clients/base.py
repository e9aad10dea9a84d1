from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True)
class ItemSnapshot:
    """What the purchase service knows about an item at lookup time."""
    id: UUID
    name: str
    price: Decimal
    stock: int


class ItemDirectory(ABC):

    @abstractmethod
    async def fetch_item(self, item_id: UUID) -> ItemSnapshot:
        """
        Return the current state of one item.

        Raises ItemNotFound when the item does not exist and
        ItemDirectoryError when the directory cannot answer.
        """
        pass

    async def aclose(self) -> None:
        pass
