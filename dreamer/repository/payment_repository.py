"""Database helpers for payment persistence."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from dreamer.models.payment import Payment


def list_payments(
    db: Session,
    *,
    offset: int = 0,
    limit: Optional[int] = None,
    reservation_id: Optional[int] = None,
) -> list[Payment]:
    query = db.query(Payment)

    if reservation_id is not None:
        query = query.filter(Payment.reservation_id == reservation_id)

    query = query.order_by(Payment.id)
    if offset:
        query = query.offset(offset)
    if limit is not None:
        query = query.limit(limit)
    return query.all()


__all__ = ["list_payments"]
