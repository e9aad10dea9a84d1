from shop.models.item import Item
from shop.models.purchase import Purchase
from shop.models.purchase_item import PurchaseItem
from shop.models.user import User

__all__ = ["Item", "Purchase", "PurchaseItem", "User"]
