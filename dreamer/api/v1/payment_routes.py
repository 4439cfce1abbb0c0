from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from dreamer.core.security import get_current_user
from dreamer.dependencies import get_db
from dreamer.schemas.payment import PaymentResponse
from dreamer.services.payment_service import PaymentService

router = APIRouter(
    prefix="/payments",
    tags=["payments"],
    dependencies=[Depends(get_current_user)],
)


@router.get("/", response_model=List[PaymentResponse])
def list_payments(
    page: int = Query(1, ge=1),
    reservation_id: Optional[int] = Query(None, description="Filter by reservation"),
    db: Session = Depends(get_db),
):
    return PaymentService(db).list_payments(page, reservation_id=reservation_id)
