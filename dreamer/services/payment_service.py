"""Read-only access to the payments table."""

from typing import List, Optional

from sqlalchemy.orm import Session

from dreamer.core.config import settings
from dreamer.models.payment import Payment
from dreamer.repository import payment_repository


class PaymentService:
    def __init__(self, db: Session):
        self.db = db

    def list_payments(
        self,
        page: int = 1,
        *,
        reservation_id: Optional[int] = None,
    ) -> List[Payment]:
        page_size = settings.DEFAULT_PAGE_SIZE
        return payment_repository.list_payments(
            self.db,
            offset=(page - 1) * page_size,
            limit=page_size,
            reservation_id=reservation_id,
        )
