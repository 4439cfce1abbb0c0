from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field as PydanticField, computed_field

from dreamer.services.slot_utils import capacity_for_type

FieldType = Literal["futbol7", "futbol11"]


class FieldBase(BaseModel):
    name: str = PydanticField(..., min_length=1, max_length=255)
    type: FieldType
    description: Optional[str] = None
    address: Optional[str] = PydanticField(None, max_length=255)
    location: Optional[str] = PydanticField(None, max_length=255)
    price_per_hour: Decimal = PydanticField(..., gt=0, max_digits=8, decimal_places=2)
    images: List[str] = PydanticField(default_factory=list)


class FieldCreate(FieldBase):
    pass


class FieldResponse(FieldBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    images: Optional[List[str]] = None
    created_at: Optional[datetime] = None

    @computed_field  # type: ignore[misc]
    @property
    def capacity(self) -> int:
        return capacity_for_type(self.type)


class FieldPage(BaseModel):
    data: List[FieldResponse]
    totalPages: int
