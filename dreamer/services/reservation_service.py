"""Capacity allocator for field reservations.

Every mutation of the people booked into a ``(field_id, date, slot)`` key runs
the same sequence inside one transaction: lock the slot key, read the
aggregate occupancy of the whole slot, compare it against the field capacity
and write. The slot lock keeps two requests on the same key from interleaving
between the read and the write.
"""

import logging
from contextlib import contextmanager
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from dreamer.core.config import settings
from dreamer.core.exceptions import (
    CapacityExceededError,
    InternalError,
    NotFoundError,
    ResourceExhaustedError,
)
from dreamer.models.field import Field
from dreamer.models.reservation import Reservation, ReservationUser
from dreamer.repository import (
    field_repository,
    reservation_repository,
    slot_lock_repository,
    user_repository,
)
from dreamer.schemas.reservation import ReservationUserIn
from dreamer.services.slot_utils import (
    SLOT_WINDOWS,
    capacity_for_type,
    format_slot,
    slot_bounds,
    validate_slot,
)

logger = logging.getLogger(__name__)

QuantityMap = Dict[int, int]


def merge_quantities(entries: Iterable[ReservationUserIn]) -> QuantityMap:
    """Collapse request entries into ``{user_id: quantity}``; repeated ids add up."""

    merged: QuantityMap = {}
    for entry in entries:
        merged[entry.user_id] = merged.get(entry.user_id, 0) + entry.quantity
    return merged


class ReservationService:

    def __init__(self, db: Session):
        self.db = db

    # Reads

    def list_reservations(
        self,
        page: int = 1,
        *,
        field_id: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> List[Reservation]:
        page_size = settings.DEFAULT_PAGE_SIZE
        return reservation_repository.list_reservations(
            self.db,
            offset=(page - 1) * page_size,
            limit=page_size,
            field_id=field_id,
            user_id=user_id,
        )

    def get_reservation(self, reservation_id: int) -> Reservation:
        reservation = reservation_repository.get_reservation(self.db, reservation_id)
        if reservation is None:
            raise NotFoundError("Reservation not found")
        return reservation

    def list_reservation_users(self, reservation_id: int) -> List[ReservationUser]:
        self.get_reservation(reservation_id)
        return reservation_repository.get_reservation_users(self.db, reservation_id)

    def get_occupancy(
        self,
        field_id: int,
        slot_date: Union[str, date],
        slot: int,
    ) -> Dict[str, object]:
        parsed_date = validate_slot(slot_date, slot)
        field = self._get_field(field_id)

        capacity = capacity_for_type(field.type)
        occupied = reservation_repository.slot_occupancy(
            self.db,
            field_id=field.id,
            slot_date=parsed_date,
            slot=slot,
        )
        return {
            "field_id": field.id,
            "date": parsed_date,
            "slot": slot,
            "occupied": occupied,
            "capacity": capacity,
            "available": max(0, capacity - occupied),
        }

    def list_field_availability(
        self,
        field_id: int,
        slot_date: Union[str, date],
    ) -> Dict[str, object]:
        """Occupancy of the four slots of ``field_id`` on one weekend day."""

        parsed_date = validate_slot(slot_date, min(SLOT_WINDOWS))
        field = self._get_field(field_id)

        capacity = capacity_for_type(field.type)
        occupancy = reservation_repository.occupancy_by_slot(
            self.db,
            field_id=field.id,
            slot_date=parsed_date,
        )

        slots = []
        for slot, (start, end) in sorted(SLOT_WINDOWS.items()):
            occupied = occupancy.get(slot, 0)
            slots.append(
                {
                    "slot": slot,
                    "start_time": start,
                    "end_time": end,
                    "occupied": occupied,
                    "capacity": capacity,
                    "available": max(0, capacity - occupied),
                }
            )

        return {"field_id": field.id, "date": parsed_date, "slots": slots}

    # Mutations

    def create_reservation(
        self,
        field_id: int,
        slot_date: Union[str, date],
        slot: int,
        users: Iterable[ReservationUserIn],
    ) -> Dict[str, object]:
        """Book ``users`` into a new reservation on ``(field_id, date, slot)``.

        Returns ``reservation_id``, ``total_price`` and ``plazasDisponibles``,
        the room left in the slot once the reservation is committed.
        """

        parsed_date = validate_slot(slot_date, slot)
        requested = merge_quantities(users)
        requested_total = sum(requested.values())

        with self._transaction("creating reservation"):
            field = self._get_field(field_id)
            self._ensure_users_exist(requested)

            capacity = capacity_for_type(field.type)
            slot_lock_repository.acquire_slot_lock(
                self.db,
                field_id=field.id,
                slot_date=parsed_date,
                slot=slot,
            )
            occupied = reservation_repository.slot_occupancy(
                self.db,
                field_id=field.id,
                slot_date=parsed_date,
                slot=slot,
            )
            self._check_capacity(
                capacity=capacity,
                occupied=occupied,
                delta=requested_total,
                key=(field.id, parsed_date, slot),
            )

            start_time, end_time = slot_bounds(parsed_date, slot)
            reservation = reservation_repository.create_reservation(
                self.db,
                {
                    "field_id": field.id,
                    "date": parsed_date,
                    "slot": slot,
                    "start_time": start_time,
                    "end_time": end_time,
                    "total_price": self._total_price(field, requested_total),
                },
            )
            for user_id, quantity in requested.items():
                reservation_repository.upsert_reservation_user(
                    self.db,
                    reservation_id=reservation.id,
                    user_id=user_id,
                    quantity=quantity,
                )

            reservation_id = reservation.id
            total_price = reservation.total_price

        logger.info(
            "Created reservation %s on field %s %s %s with %s places",
            reservation_id,
            field_id,
            parsed_date,
            format_slot(slot),
            requested_total,
        )

        return {
            "reservation_id": reservation_id,
            "total_price": total_price,
            "plazasDisponibles": max(0, capacity - occupied - requested_total),
        }

    def add_users(
        self,
        reservation_id: int,
        users: Iterable[ReservationUserIn],
    ) -> Reservation:
        """Increase the places held by each user; absent users are added."""

        requested = merge_quantities(users)

        def build_target(current: QuantityMap) -> QuantityMap:
            target = dict(current)
            for user_id, quantity in requested.items():
                target[user_id] = target.get(user_id, 0) + quantity
            return target

        return self._mutate_users(reservation_id, build_target, "adding users")

    def replace_users(
        self,
        reservation_id: int,
        users: Iterable[ReservationUserIn],
    ) -> Reservation:
        """Reset the reservation to exactly ``users``."""

        requested = merge_quantities(users)

        def build_target(current: QuantityMap) -> QuantityMap:
            return dict(requested)

        return self._mutate_users(reservation_id, build_target, "replacing users")

    def patch_users(
        self,
        reservation_id: int,
        *,
        add_users: Optional[Iterable[ReservationUserIn]] = None,
        remove_user_ids: Optional[Iterable[int]] = None,
    ) -> Reservation:
        """Add places and drop users in one step; additions apply first."""

        requested = merge_quantities(add_users or [])
        removed = set(remove_user_ids or [])

        def build_target(current: QuantityMap) -> QuantityMap:
            target = dict(current)
            for user_id, quantity in requested.items():
                target[user_id] = target.get(user_id, 0) + quantity
            for user_id in removed:
                target.pop(user_id, None)
            return target

        return self._mutate_users(reservation_id, build_target, "patching users")

    def remove_users(self, reservation_id: int, user_ids: Iterable[int]) -> Reservation:
        """Drop ``user_ids`` from the reservation; ids not present are ignored."""

        removed = set(user_ids)

        def build_target(current: QuantityMap) -> QuantityMap:
            return {
                user_id: quantity
                for user_id, quantity in current.items()
                if user_id not in removed
            }

        return self._mutate_users(reservation_id, build_target, "removing users")

    def remove_user(self, reservation_id: int, user_id: int) -> Reservation:
        """Drop a single user, failing with ``NotFoundError`` if it is not booked."""

        def build_target(current: QuantityMap) -> QuantityMap:
            if user_id not in current:
                raise NotFoundError("User is not part of this reservation")
            target = dict(current)
            del target[user_id]
            return target

        return self._mutate_users(reservation_id, build_target, "removing user")

    def delete_reservation(self, reservation_id: int) -> None:
        with self._transaction("deleting reservation"):
            reservation = self.get_reservation(reservation_id)
            slot_lock_repository.acquire_slot_lock(
                self.db,
                field_id=reservation.field_id,
                slot_date=reservation.date,
                slot=reservation.slot,
            )
            reservation = self._reload_locked(reservation_id)
            reservation_repository.delete_reservation(self.db, reservation)

        logger.info("Deleted reservation %s", reservation_id)

    # Helpers

    def _mutate_users(
        self,
        reservation_id: int,
        build_target: Callable[[QuantityMap], QuantityMap],
        action: str,
    ) -> Reservation:
        with self._transaction(action):
            reservation = self.get_reservation(reservation_id)
            field = reservation.field
            capacity = capacity_for_type(field.type)

            slot_lock_repository.acquire_slot_lock(
                self.db,
                field_id=reservation.field_id,
                slot_date=reservation.date,
                slot=reservation.slot,
            )
            reservation = self._reload_locked(reservation_id)

            # Re-read under the lock; the rows loaded above may be stale.
            links = {
                link.user_id: link
                for link in reservation_repository.get_reservation_users(
                    self.db, reservation_id
                )
            }
            current = {user_id: link.quantity for user_id, link in links.items()}
            target = build_target(current)
            self._ensure_users_exist(
                user_id for user_id in target if user_id not in current
            )

            booked_here = sum(current.values())
            target_total = sum(target.values())
            delta = target_total - booked_here

            if delta > 0:
                occupied = reservation_repository.slot_occupancy(
                    self.db,
                    field_id=reservation.field_id,
                    slot_date=reservation.date,
                    slot=reservation.slot,
                )
                self._check_capacity(
                    capacity=capacity,
                    occupied=occupied,
                    delta=delta,
                    key=(reservation.field_id, reservation.date, reservation.slot),
                )

            for user_id, link in links.items():
                if user_id not in target:
                    reservation_repository.delete_reservation_user(self.db, link)

            for user_id, quantity in target.items():
                if current.get(user_id) != quantity:
                    reservation_repository.upsert_reservation_user(
                        self.db,
                        reservation_id=reservation_id,
                        user_id=user_id,
                        quantity=quantity,
                        existing=links.get(user_id),
                    )

            reservation.total_price = self._total_price(field, target_total)
            reservation_repository.save_reservation(self.db, reservation)

        logger.info(
            "Reservation %s: %s, %s -> %s places",
            reservation_id,
            action,
            booked_here,
            target_total,
        )
        return self.get_reservation(reservation_id)

    def _reload_locked(self, reservation_id: int) -> Reservation:
        """Fetch the reservation again once its slot is locked.

        A concurrent delete may have committed while this request waited.
        """

        reservation = self.db.get(Reservation, reservation_id, populate_existing=True)
        if reservation is None:
            raise NotFoundError("Reservation not found")
        return reservation

    @contextmanager
    def _transaction(self, action: str) -> Iterator[None]:
        """Commit on success; roll back and translate errors otherwise."""

        try:
            yield
            self.db.commit()
        except HTTPException:
            self.db.rollback()
            raise
        except PoolTimeoutError as exc:
            self.db.rollback()
            logger.error("No database connection available while %s", action)
            raise ResourceExhaustedError("No database connection available") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Storage failure while %s", action)
            raise InternalError(f"Storage failure while {action}") from exc

    def _get_field(self, field_id: int) -> Field:
        field = field_repository.get_field(self.db, field_id)
        if field is None:
            raise NotFoundError("Field not found")
        return field

    def _ensure_users_exist(self, user_ids: Iterable[int]) -> None:
        wanted = set(user_ids)
        missing = wanted - user_repository.get_existing_user_ids(self.db, wanted)
        if missing:
            raise NotFoundError(
                f"Users not found: {', '.join(str(user_id) for user_id in sorted(missing))}"
            )

    @staticmethod
    def _check_capacity(
        *,
        capacity: int,
        occupied: int,
        delta: int,
        key: Tuple[int, date, int],
    ) -> None:
        if occupied + delta <= capacity:
            return

        logger.warning(
            "Rejected %s places on field %s %s slot %s: %s of %s taken",
            delta,
            key[0],
            key[1],
            key[2],
            occupied,
            capacity,
        )
        raise CapacityExceededError(
            max_users=capacity,
            occupied=occupied,
            requested=delta,
        )

    @staticmethod
    def _total_price(field: Field, quantity: int) -> Decimal:
        price = Decimal(str(field.price_per_hour))
        return (price * quantity).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
