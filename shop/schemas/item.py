from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ItemBase(BaseModel):
    name: str = Field(..., min_length=3, max_length=255, json_schema_extra={"example": "Widget"})
    description: str = Field("", max_length=5000)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2, json_schema_extra={"example": 10.00})
    stock: int = Field(..., ge=0, json_schema_extra={"example": 5})


class ItemCreate(ItemBase):
    pass


class ItemUpdate(ItemBase):
    """Full replacement of an item's editable fields (PUT semantics)."""
    pass


class ItemRead(ItemBase):
    id: UUID
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
