"""SQLAlchemy models for the reservation service."""
from dreamer.models.field import Field
from dreamer.models.payment import Payment
from dreamer.models.reservation import Reservation, ReservationUser
from dreamer.models.revoked_token import RevokedToken
from dreamer.models.slot_lock import SlotLock
from dreamer.models.user import User

__all__ = [
    "Field",
    "Payment",
    "Reservation",
    "ReservationUser",
    "RevokedToken",
    "SlotLock",
    "User",
]
