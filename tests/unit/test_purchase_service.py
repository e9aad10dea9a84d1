import asyncio
import dataclasses
import uuid
from decimal import Decimal

import pytest

from shop.core.exceptions import (
    DuplicateIdempotencyKey,
    InsufficientStockError,
    ItemDirectoryError,
    PurchaseConflict,
    PurchaseItemNotFound,
)
from shop.schemas.purchase import PurchaseItemRequest
from shop.services.purchase_service import PurchaseService

from tests.fakes import (
    InMemoryItemDirectory,
    InMemoryPurchaseStore,
    UnreachableItemDirectory,
)


@pytest.fixture
def directory(catalog):
    return InMemoryItemDirectory(catalog)


@pytest.fixture
def store(catalog):
    return InMemoryPurchaseStore(catalog)


@pytest.fixture
def service(store, directory):
    return PurchaseService(store, directory)


def lines(*pairs):
    return [PurchaseItemRequest(item_id=item_id, quantity=qty) for item_id, qty in pairs]


async def test_purchase_computes_total_and_decrements_stock(service, catalog, store):
    widget = catalog.add("Widget", "10.00", 5)
    gadget = catalog.add("Gadget", "2.50", 10)
    user_id = uuid.uuid4()

    purchase, created = await service.create_purchase(
        user_id=user_id, items=lines((widget, 3), (gadget, 4))
    )

    assert created is True
    assert purchase.user_id == user_id
    assert purchase.total_amount == Decimal("40.00")
    assert [(line.name, line.quantity) for line in purchase.items] == [
        ("Widget", 3),
        ("Gadget", 4),
    ]
    assert purchase.items[0].price_at_purchase == Decimal("10.00")
    assert purchase.items[1].line_total == Decimal("10.00")

    assert catalog.items[widget]["stock"] == 2
    assert catalog.items[gadget]["stock"] == 6
    assert len(store.purchases) == 1


async def test_unknown_item_is_a_purchase_conflict(service, catalog, store):
    widget = catalog.add("Widget", "10.00", 5)
    missing = uuid.uuid4()

    with pytest.raises(PurchaseItemNotFound) as exc_info:
        await service.create_purchase(
            user_id=uuid.uuid4(), items=lines((widget, 1), (missing, 1))
        )

    assert isinstance(exc_info.value, PurchaseConflict)
    assert exc_info.value.item_id == missing
    assert catalog.items[widget]["stock"] == 5
    assert store.purchases == []


async def test_precheck_rejects_before_any_write(service, catalog, store):
    widget = catalog.add("Widget", "10.00", 2)

    with pytest.raises(InsufficientStockError):
        await service.create_purchase(user_id=uuid.uuid4(), items=lines((widget, 3)))

    assert catalog.items[widget]["stock"] == 2
    assert store.purchases == []


async def test_precheck_sums_repeated_lines_of_one_item(service, catalog, store):
    widget = catalog.add("Widget", "10.00", 5)

    with pytest.raises(InsufficientStockError):
        await service.create_purchase(
            user_id=uuid.uuid4(), items=lines((widget, 3), (widget, 3))
        )

    assert catalog.items[widget]["stock"] == 5
    assert store.purchases == []


async def test_each_item_is_fetched_once(service, catalog, directory):
    widget = catalog.add("Widget", "1.00", 10)

    await service.create_purchase(
        user_id=uuid.uuid4(), items=lines((widget, 1), (widget, 2))
    )

    assert directory.calls == [widget]


async def test_failing_line_leaves_no_partial_purchase(store, catalog):
    """Line 2 fails at the conditional decrement: line 1 must not stick either."""
    widget = catalog.add("Widget", "10.00", 5)
    gadget = catalog.add("Gadget", "2.50", 10)

    class StaleDirectory(InMemoryItemDirectory):
        async def fetch_item(self, item_id):
            snapshot = await super().fetch_item(item_id)
            # Pretend plenty is left so only the store can say no
            return dataclasses.replace(snapshot, stock=1000)

    service = PurchaseService(store, StaleDirectory(catalog))

    with pytest.raises(InsufficientStockError) as exc_info:
        await service.create_purchase(
            user_id=uuid.uuid4(), items=lines((widget, 3), (gadget, 11))
        )

    assert exc_info.value.item_id == gadget
    assert catalog.items[widget]["stock"] == 5
    assert catalog.items[gadget]["stock"] == 10
    assert store.purchases == []


async def test_concurrent_purchases_cannot_oversell(service, catalog, store):
    widget = catalog.add("Widget", "10.00", 5)

    results = await asyncio.gather(
        service.create_purchase(user_id=uuid.uuid4(), items=lines((widget, 3))),
        service.create_purchase(user_id=uuid.uuid4(), items=lines((widget, 3))),
        return_exceptions=True,
    )

    succeeded = [r for r in results if not isinstance(r, Exception)]
    failed = [r for r in results if isinstance(r, Exception)]

    assert len(succeeded) == 1
    assert len(failed) == 1
    assert isinstance(failed[0], InsufficientStockError)
    assert catalog.items[widget]["stock"] == 2
    assert len(store.purchases) == 1


async def test_stock_never_goes_negative_over_many_purchases(service, catalog):
    widget = catalog.add("Widget", "1.00", 7)

    outcomes = await asyncio.gather(
        *[
            service.create_purchase(user_id=uuid.uuid4(), items=lines((widget, qty)))
            for qty in (2, 3, 1, 4, 2, 1)
        ],
        return_exceptions=True,
    )

    sold = sum(
        purchase.items[0].quantity
        for purchase, _ in (o for o in outcomes if not isinstance(o, Exception))
    )
    assert catalog.items[widget]["stock"] >= 0
    assert catalog.items[widget]["stock"] == 7 - sold


async def test_price_snapshot_survives_price_change(service, catalog):
    widget = catalog.add("Widget", "10.00", 5)
    user_id = uuid.uuid4()

    await service.create_purchase(user_id=user_id, items=lines((widget, 2)))
    catalog.items[widget]["price"] = Decimal("99.99")
    catalog.items[widget]["name"] = "Widget Pro"

    [purchase] = await service.get_purchase_history(user_id)

    assert purchase.total_amount == Decimal("20.00")
    assert purchase.items[0].price_at_purchase == Decimal("10.00")
    # Names are resolved live
    assert purchase.items[0].name == "Widget Pro"


async def test_history_keeps_lines_of_deleted_items(service, catalog):
    widget = catalog.add("Widget", "10.00", 5)
    user_id = uuid.uuid4()

    await service.create_purchase(user_id=user_id, items=lines((widget, 1)))
    del catalog.items[widget]

    [purchase] = await service.get_purchase_history(user_id)

    assert purchase.items[0].item_id == widget
    assert purchase.items[0].name is None


async def test_history_is_per_user(service, catalog):
    widget = catalog.add("Widget", "1.00", 10)
    alice, bob = uuid.uuid4(), uuid.uuid4()

    await service.create_purchase(user_id=alice, items=lines((widget, 1)))
    await service.create_purchase(user_id=alice, items=lines((widget, 2)))
    await service.create_purchase(user_id=bob, items=lines((widget, 3)))

    history = await service.get_purchase_history(alice)

    assert len(history) == 2
    assert all(p.user_id == alice for p in history)


async def test_idempotency_key_replays_original_purchase(service, catalog, store):
    widget = catalog.add("Widget", "10.00", 5)
    user_id = uuid.uuid4()

    first, created = await service.create_purchase(
        user_id=user_id, items=lines((widget, 2)), idempotency_key="order-1"
    )
    again, created_again = await service.create_purchase(
        user_id=user_id, items=lines((widget, 2)), idempotency_key="order-1"
    )

    assert created is True
    assert created_again is False
    assert again.id == first.id
    assert catalog.items[widget]["stock"] == 3
    assert len(store.purchases) == 1


async def test_idempotency_keys_are_scoped_per_user(service, catalog, store):
    widget = catalog.add("Widget", "10.00", 5)

    await service.create_purchase(
        user_id=uuid.uuid4(), items=lines((widget, 1)), idempotency_key="same"
    )
    _, created = await service.create_purchase(
        user_id=uuid.uuid4(), items=lines((widget, 1)), idempotency_key="same"
    )

    assert created is True
    assert catalog.items[widget]["stock"] == 3


async def test_blank_idempotency_key_is_ignored(service, catalog, store):
    widget = catalog.add("Widget", "10.00", 5)
    user_id = uuid.uuid4()

    first, created = await service.create_purchase(
        user_id=user_id, items=lines((widget, 1)), idempotency_key=""
    )
    second, created_again = await service.create_purchase(
        user_id=user_id, items=lines((widget, 1)), idempotency_key=""
    )

    assert created is True
    assert created_again is True
    assert first.id != second.id
    assert all(p.idempotency_key is None for p in store.purchases)
    assert catalog.items[widget]["stock"] == 3


async def test_concurrent_requests_with_one_key_buy_once(service, catalog, store):
    widget = catalog.add("Widget", "10.00", 5)
    user_id = uuid.uuid4()

    results = await asyncio.gather(
        service.create_purchase(
            user_id=user_id, items=lines((widget, 2)), idempotency_key="double-click"
        ),
        service.create_purchase(
            user_id=user_id, items=lines((widget, 2)), idempotency_key="double-click"
        ),
    )

    assert sorted(created for _, created in results) == [False, True]
    assert results[0][0].id == results[1][0].id
    assert catalog.items[widget]["stock"] == 3
    assert len(store.purchases) == 1


async def test_duplicate_key_without_visible_winner_propagates(catalog, directory):
    widget = catalog.add("Widget", "10.00", 5)

    class VanishingWinnerStore(InMemoryPurchaseStore):
        async def create_purchase(self, purchase, lines):
            raise DuplicateIdempotencyKey()

    service = PurchaseService(VanishingWinnerStore(catalog), directory)

    with pytest.raises(DuplicateIdempotencyKey):
        await service.create_purchase(
            user_id=uuid.uuid4(), items=lines((widget, 1)), idempotency_key="k"
        )

    assert catalog.items[widget]["stock"] == 5


async def test_directory_outage_is_not_a_conflict(store, catalog):
    widget = catalog.add("Widget", "10.00", 5)
    service = PurchaseService(store, UnreachableItemDirectory())

    with pytest.raises(ItemDirectoryError):
        await service.create_purchase(user_id=uuid.uuid4(), items=lines((widget, 1)))

    assert catalog.items[widget]["stock"] == 5
