from datetime import datetime
from decimal import Decimal
from typing import List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PurchaseItemRequest(BaseModel):
    item_id: UUID
    quantity: int = Field(..., gt=0, json_schema_extra={"example": 3})


class PurchaseCreate(BaseModel):
    items: List[PurchaseItemRequest] = Field(..., min_length=1)


class PurchaseItemRead(BaseModel):
    item_id: UUID
    # None when the item has since been removed from the catalog
    name: str | None
    quantity: int
    price_at_purchase: Decimal
    line_total: Decimal

    model_config = ConfigDict(from_attributes=True)


class PurchaseRead(BaseModel):
    id: UUID
    user_id: UUID
    total_amount: Decimal
    created_at: datetime
    items: List[PurchaseItemRead]

    model_config = ConfigDict(from_attributes=True)
