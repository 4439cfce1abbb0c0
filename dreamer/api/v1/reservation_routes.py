"""API routes for reservations and the users booked into them."""

from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from dreamer.core.security import get_current_user
from dreamer.dependencies import get_db
from dreamer.schemas.reservation import (
    ReservationCreate,
    ReservationCreated,
    ReservationResponse,
    ReservationUserResponse,
    ReservationUsersAdd,
    ReservationUsersPatch,
    ReservationUsersReplace,
)
from dreamer.services.reservation_service import ReservationService

router = APIRouter(
    prefix="/reservations",
    tags=["reservations"],
    dependencies=[Depends(get_current_user)],
)


@router.get("/", response_model=List[ReservationResponse])
def list_reservations(
    page: int = Query(1, ge=1),
    field_id: int | None = Query(None, description="Filter by field"),
    user_id: int | None = Query(None, description="Filter by booked user"),
    db: Session = Depends(get_db),
):
    return ReservationService(db).list_reservations(
        page,
        field_id=field_id,
        user_id=user_id,
    )


@router.post("/", response_model=ReservationCreated, status_code=status.HTTP_201_CREATED)
def create_reservation(payload: ReservationCreate, db: Session = Depends(get_db)):
    service = ReservationService(db)
    return service.create_reservation(
        payload.field_id,
        payload.date,
        payload.slot,
        payload.users,
    )


@router.get("/{reservation_id}", response_model=ReservationResponse)
def get_reservation(reservation_id: int, db: Session = Depends(get_db)):
    return ReservationService(db).get_reservation(reservation_id)


@router.delete("/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_reservation(reservation_id: int, db: Session = Depends(get_db)) -> None:
    ReservationService(db).delete_reservation(reservation_id)


@router.get("/{reservation_id}/users", response_model=List[ReservationUserResponse])
def list_reservation_users(reservation_id: int, db: Session = Depends(get_db)):
    return ReservationService(db).list_reservation_users(reservation_id)


@router.post("/{reservation_id}/users", response_model=ReservationResponse)
def add_reservation_users(
    reservation_id: int,
    payload: ReservationUsersAdd,
    db: Session = Depends(get_db),
):
    """Add places; a user already booked gets its quantity increased."""

    return ReservationService(db).add_users(reservation_id, payload.users)


@router.put("/{reservation_id}/users", response_model=ReservationResponse)
def replace_reservation_users(
    reservation_id: int,
    payload: ReservationUsersReplace,
    db: Session = Depends(get_db),
):
    return ReservationService(db).replace_users(reservation_id, payload.users)


@router.patch("/{reservation_id}/users", response_model=ReservationResponse)
def patch_reservation_users(
    reservation_id: int,
    payload: ReservationUsersPatch,
    db: Session = Depends(get_db),
):
    return ReservationService(db).patch_users(
        reservation_id,
        add_users=payload.add_users,
        remove_user_ids=payload.remove_user_ids,
    )


@router.delete("/{reservation_id}/users", response_model=ReservationResponse)
def remove_reservation_users(
    reservation_id: int,
    user_ids: List[int] = Query(..., description="Users to drop from the reservation"),
    db: Session = Depends(get_db),
):
    return ReservationService(db).remove_users(reservation_id, user_ids)


@router.delete("/{reservation_id}/users/{user_id}", response_model=ReservationResponse)
def remove_reservation_user(
    reservation_id: int,
    user_id: int,
    db: Session = Depends(get_db),
):
    return ReservationService(db).remove_user(reservation_id, user_id)
