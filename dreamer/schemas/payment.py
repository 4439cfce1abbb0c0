"""Pydantic schemas for payment resources."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    reservation_id: int
    amount: Decimal
    payment_method: str
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
