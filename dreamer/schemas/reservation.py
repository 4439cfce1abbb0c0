"""Pydantic schemas for reservations and their occupancy entries."""

from __future__ import annotations

from datetime import date as date_type
from datetime import datetime, time
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ReservationUserIn(BaseModel):
    user_id: int = Field(..., gt=0)
    quantity: int = Field(1, ge=1, description="Places claimed by this user")


class ReservationCreate(BaseModel):
    """Schema used when creating a new reservation."""

    field_id: int = Field(..., gt=0)
    # Kept as text so malformed dates are reported as invalid slots.
    date: str = Field(..., examples=["2025-06-14"])
    slot: int = Field(..., description="Slot number 1-4")
    users: List[ReservationUserIn] = Field(..., min_length=1)


class ReservationUsersAdd(BaseModel):
    users: List[ReservationUserIn] = Field(..., min_length=1)


class ReservationUsersReplace(BaseModel):
    users: List[ReservationUserIn]


class ReservationUsersPatch(BaseModel):
    """Partial update; omitted lists leave the reservation untouched."""

    add_users: Optional[List[ReservationUserIn]] = None
    remove_user_ids: Optional[List[int]] = None


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str


class ReservationUserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    quantity: int
    user: UserSummary


class ReservationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    field_id: int
    date: date_type
    slot: int
    start_time: datetime
    end_time: datetime
    total_price: Decimal
    created_at: Optional[datetime] = None
    users: List[ReservationUserResponse] = Field(default_factory=list)


class ReservationCreated(BaseModel):
    reservation_id: int
    total_price: Decimal
    plazasDisponibles: int


class OccupancyResponse(BaseModel):
    field_id: int
    date: date_type
    slot: int
    occupied: int
    capacity: int
    available: int


class SlotAvailability(BaseModel):
    slot: int
    start_time: time
    end_time: time
    occupied: int
    capacity: int
    available: int


class FieldAvailabilityResponse(BaseModel):
    field_id: int
    date: date_type
    slots: List[SlotAvailability]


class MessageResponse(BaseModel):
    message: str
