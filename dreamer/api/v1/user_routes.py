from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from dreamer.core.security import get_current_user
from dreamer.dependencies import get_db
from dreamer.schemas.auth import UserResponse, UserUpdateRequest
from dreamer.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/", response_model=List[UserResponse])
def list_users(
    page: int = Query(1, ge=1),
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return UserService(db).list_users(page)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return UserService(db).get_user(user_id)


@router.patch("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    updates: UserUpdateRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user_service = UserService(db)
    return user_service.update_user(
        user_id,
        updates.model_dump(exclude_unset=True),
        current_user,
    )
