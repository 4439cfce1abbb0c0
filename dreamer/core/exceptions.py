"""Domain errors raised by the reservation service.

Every error is an ``HTTPException`` so services can raise them exactly where
they would raise an HTTP error and the route layer needs no translation.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import HTTPException, status


class ReservationError(HTTPException):
    """Base error type for reservation domain errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: Any = None) -> None:
        super().__init__(status_code=self.status_code, detail=detail)


class NotFoundError(ReservationError):
    """Raised when a field, reservation, user or relation does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class InvalidSlotError(ReservationError):
    """Raised for malformed dates, non-weekend days or unknown slot ids."""

    status_code = status.HTTP_400_BAD_REQUEST


class CapacityExceededError(ReservationError):
    """Raised when a mutation would push a slot past the field capacity."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(
        self,
        *,
        max_users: int,
        occupied: int,
        requested: int,
    ) -> None:
        self.max_users = max_users
        self.occupied = occupied
        self.requested = requested
        super().__init__(detail="Not enough room left in the requested slot")

    @property
    def available(self) -> int:
        return max(0, self.max_users - self.occupied)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "detail": self.detail,
            "maxUsers": self.max_users,
            "plazasDisponibles": self.available,
            "plazasSolicitadas": self.requested,
            "plazasReservadas": self.occupied,
        }


class InternalError(ReservationError):
    """Raised when the storage layer fails while serving a request."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ResourceExhaustedError(ReservationError):
    """Raised when no database connection could be obtained in time."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


__all__ = [
    "ReservationError",
    "NotFoundError",
    "InvalidSlotError",
    "CapacityExceededError",
    "InternalError",
    "ResourceExhaustedError",
]
