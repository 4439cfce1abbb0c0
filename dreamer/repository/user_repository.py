from typing import Iterable, List, Optional, Set

from sqlalchemy import func
from sqlalchemy.orm import Session

from dreamer.models.user import User


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(func.lower(User.email) == email.lower()).first()


def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def list_users(db: Session, *, offset: int = 0, limit: Optional[int] = None) -> List[User]:
    query = db.query(User).order_by(User.id)
    if offset:
        query = query.offset(offset)
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def get_existing_user_ids(db: Session, user_ids: Iterable[int]) -> Set[int]:
    ids = set(user_ids)
    if not ids:
        return set()
    return {row[0] for row in db.query(User.id).filter(User.id.in_(ids))}


def create_user(db: Session, user: User) -> User:
    db.add(user)
    db.flush()
    return user
