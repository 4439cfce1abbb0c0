import logging
from typing import Any, Dict, List

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dreamer.core.config import settings
from dreamer.core.exceptions import InternalError, NotFoundError
from dreamer.models.user import User
from dreamer.repository import user_repository
from dreamer.services.auth_service import ROLE_ADMIN, hash_password, role_for_email

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def list_users(self, page: int = 1) -> List[User]:
        page_size = settings.DEFAULT_PAGE_SIZE
        return user_repository.list_users(
            self.db,
            offset=(page - 1) * page_size,
            limit=page_size,
        )

    def get_user(self, user_id: int) -> User:
        user = user_repository.get_user_by_id(self.db, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def update_user(
        self,
        user_id: int,
        updates: Dict[str, Any],
        requester: Dict[str, Any],
    ) -> User:
        """Apply a partial update; ``updates`` only holds the fields sent by the client."""

        if requester["user_id"] != user_id and requester.get("role") != ROLE_ADMIN:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not allowed to update this user",
            )

        user = self.get_user(user_id)

        if "email" in updates and updates["email"] is not None:
            email = updates["email"]
            existing = user_repository.get_user_by_email(self.db, email)
            if existing is not None and existing.id != user.id:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="Email already registered",
                )
            user.email = email
            user.role = role_for_email(email)

        if updates.get("name") is not None:
            user.name = updates["name"]

        if updates.get("password") is not None:
            user.password_hash = hash_password(updates["password"])

        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Could not update user %s", user_id)
            raise InternalError("Failed to update user") from exc

        self.db.refresh(user)
        return user
