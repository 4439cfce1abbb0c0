from __future__ import annotations

from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from dreamer.models.field import Field


def list_fields(db: Session, *, offset: int = 0, limit: Optional[int] = None) -> List[Field]:
    query = db.query(Field).order_by(Field.id)
    if offset:
        query = query.offset(offset)
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def count_fields(db: Session) -> int:
    return db.query(func.count(Field.id)).scalar() or 0


def get_field(db: Session, field_id: int) -> Optional[Field]:
    return db.query(Field).filter(Field.id == field_id).first()


def create_field(db: Session, field: Field) -> Field:
    db.add(field)
    db.flush()
    return field
