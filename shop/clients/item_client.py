"""HTTP client the purchase service uses to read items from the item service.

This is the system's only synchronous service-to-service call. Every request
is bounded by a hard timeout and is never retried: a timeout surfaces as an
ItemDirectoryError instead of an assumption about stock.
"""

import logging
from decimal import Decimal
from uuid import UUID

import httpx

from shop.clients.base import ItemDirectory, ItemSnapshot
from shop.core.config import Settings
from shop.core.exceptions import ItemDirectoryError, ItemNotFound
from shop.core.logging import request_id_var

logger = logging.getLogger(__name__)


class HttpItemDirectory(ItemDirectory):
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        # One pooled client per process, closed in the app lifespan
        self.timeout = timeout
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpItemDirectory":
        return cls(settings.item_service_url, timeout=settings.item_service_timeout)

    async def fetch_item(self, item_id: UUID) -> ItemSnapshot:
        try:
            response = await self.client.get(
                f"/items/{item_id}",
                headers={"X-Request-Id": request_id_var.get()},
            )
        except httpx.TimeoutException as e:
            logger.error(f"Item service timed out after {self.timeout}s for item {item_id}")
            raise ItemDirectoryError(f"item service timed out for item {item_id}") from e
        except httpx.HTTPError as e:
            logger.error(f"Item service unreachable for item {item_id}: {e!r}")
            raise ItemDirectoryError(f"item service unreachable: {e}") from e

        if response.status_code == httpx.codes.NOT_FOUND:
            raise ItemNotFound(item_id)

        if response.status_code != httpx.codes.OK:
            logger.error(
                f"Item service answered {response.status_code} for item {item_id}"
            )
            raise ItemDirectoryError(f"failed to get item: HTTP {response.status_code}")

        try:
            data = response.json()
            return ItemSnapshot(
                id=UUID(str(data["id"])),
                name=data["name"],
                price=Decimal(str(data["price"])),
                stock=int(data["stock"]),
            )
        except (ValueError, KeyError, TypeError, ArithmeticError) as e:
            logger.error(f"Item service sent an unreadable item payload for {item_id}")
            raise ItemDirectoryError("malformed item payload") from e

    async def aclose(self) -> None:
        await self.client.aclose()
