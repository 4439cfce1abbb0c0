from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from dreamer.models.reservation import Reservation, ReservationUser


def get_reservation(db: Session, reservation_id: int) -> Optional[Reservation]:
    return (
        db.query(Reservation)
        .options(
            joinedload(Reservation.field),
            selectinload(Reservation.users).joinedload(ReservationUser.user),
        )
        .filter(Reservation.id == reservation_id)
        .first()
    )


def list_reservations(
    db: Session,
    *,
    offset: int = 0,
    limit: Optional[int] = None,
    field_id: Optional[int] = None,
    user_id: Optional[int] = None,
) -> List[Reservation]:
    query = db.query(Reservation).options(
        selectinload(Reservation.users).joinedload(ReservationUser.user),
    )

    if field_id is not None:
        query = query.filter(Reservation.field_id == field_id)
    if user_id is not None:
        query = query.filter(
            Reservation.users.any(ReservationUser.user_id == user_id)
        )

    query = query.order_by(Reservation.date, Reservation.slot, Reservation.id)

    if offset:
        query = query.offset(offset)
    if limit is not None:
        query = query.limit(limit)

    return query.all()


def slot_occupancy(
    db: Session,
    *,
    field_id: int,
    slot_date: date,
    slot: int,
) -> int:
    """Sum of quantities over every reservation sharing the field/date/slot key."""

    total = (
        db.query(func.coalesce(func.sum(ReservationUser.quantity), 0))
        .join(Reservation, Reservation.id == ReservationUser.reservation_id)
        .filter(Reservation.field_id == field_id)
        .filter(Reservation.date == slot_date)
        .filter(Reservation.slot == slot)
        .scalar()
    )
    return int(total or 0)


def occupancy_by_slot(db: Session, *, field_id: int, slot_date: date) -> Dict[int, int]:
    rows = (
        db.query(Reservation.slot, func.sum(ReservationUser.quantity))
        .join(ReservationUser, ReservationUser.reservation_id == Reservation.id)
        .filter(Reservation.field_id == field_id)
        .filter(Reservation.date == slot_date)
        .group_by(Reservation.slot)
        .all()
    )
    return {int(slot): int(total or 0) for slot, total in rows}


def get_reservation_users(db: Session, reservation_id: int) -> List[ReservationUser]:
    return (
        db.query(ReservationUser)
        .options(joinedload(ReservationUser.user))
        .filter(ReservationUser.reservation_id == reservation_id)
        .populate_existing()
        .order_by(ReservationUser.user_id)
        .all()
    )


def create_reservation(db: Session, reservation_data: Dict[str, object]) -> Reservation:
    reservation = Reservation(**reservation_data)
    db.add(reservation)
    db.flush()
    return reservation


def upsert_reservation_user(
    db: Session,
    *,
    reservation_id: int,
    user_id: int,
    quantity: int,
    existing: Optional[ReservationUser] = None,
) -> ReservationUser:
    if existing is None:
        existing = ReservationUser(
            reservation_id=reservation_id,
            user_id=user_id,
            quantity=quantity,
        )
        db.add(existing)
    else:
        existing.quantity = quantity
    db.flush()
    return existing


def delete_reservation_user(db: Session, link: ReservationUser) -> None:
    db.delete(link)
    db.flush()


def save_reservation(db: Session, reservation: Reservation) -> Reservation:
    db.flush()
    return reservation


def delete_reservation(db: Session, reservation: Reservation) -> None:
    db.delete(reservation)
    db.flush()


__all__ = [
    "get_reservation",
    "list_reservations",
    "slot_occupancy",
    "occupancy_by_slot",
    "get_reservation_users",
    "create_reservation",
    "upsert_reservation_user",
    "delete_reservation_user",
    "save_reservation",
    "delete_reservation",
]
