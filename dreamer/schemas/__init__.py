"""Pydantic schemas for the reservation service."""

from .auth import (
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
    UserUpdateRequest,
)
from .field import FieldCreate, FieldPage, FieldResponse
from .payment import PaymentResponse
from .reservation import (
    FieldAvailabilityResponse,
    MessageResponse,
    OccupancyResponse,
    ReservationCreate,
    ReservationCreated,
    ReservationResponse,
    ReservationUserIn,
    ReservationUserResponse,
    ReservationUsersAdd,
    ReservationUsersPatch,
    ReservationUsersReplace,
    SlotAvailability,
)

__all__ = [
    "LoginRequest",
    "RegisterRequest",
    "TokenResponse",
    "UserResponse",
    "UserUpdateRequest",
    "FieldCreate",
    "FieldPage",
    "FieldResponse",
    "PaymentResponse",
    "FieldAvailabilityResponse",
    "MessageResponse",
    "OccupancyResponse",
    "ReservationCreate",
    "ReservationCreated",
    "ReservationResponse",
    "ReservationUserIn",
    "ReservationUserResponse",
    "ReservationUsersAdd",
    "ReservationUsersPatch",
    "ReservationUsersReplace",
    "SlotAvailability",
]
