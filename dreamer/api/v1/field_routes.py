"""API routes for browsing fields and their slot occupancy."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from dreamer.core.security import require_admin
from dreamer.dependencies import get_db
from dreamer.schemas.field import FieldCreate, FieldPage, FieldResponse
from dreamer.schemas.reservation import FieldAvailabilityResponse, OccupancyResponse
from dreamer.services.field_service import FieldService
from dreamer.services.reservation_service import ReservationService

router = APIRouter(prefix="/fields", tags=["fields"])


@router.get("/", response_model=FieldPage)
def list_fields(
    page: int = Query(1, ge=1),
    db: Session = Depends(get_db),
):
    fields, total_pages = FieldService(db).list_fields(page)
    return {"data": fields, "totalPages": total_pages}


@router.post("/", response_model=FieldResponse, status_code=status.HTTP_201_CREATED)
def create_field(
    payload: FieldCreate,
    current_user: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return FieldService(db).create_field(payload)


@router.get("/{field_id}", response_model=FieldResponse)
def get_field(field_id: int, db: Session = Depends(get_db)):
    return FieldService(db).get_field(field_id)


@router.get("/{field_id}/occupancy", response_model=OccupancyResponse)
def get_occupancy(
    field_id: int,
    date: str = Query(..., description="Weekend date, YYYY-MM-DD"),
    slot: int = Query(..., description="Slot number 1-4"),
    db: Session = Depends(get_db),
):
    """Places taken and left in one slot, across every reservation in it."""

    return ReservationService(db).get_occupancy(field_id, date, slot)


@router.get("/{field_id}/availability", response_model=FieldAvailabilityResponse)
def get_availability(
    field_id: int,
    date: str = Query(..., description="Weekend date, YYYY-MM-DD"),
    db: Session = Depends(get_db),
):
    return ReservationService(db).list_field_availability(field_id, date)
