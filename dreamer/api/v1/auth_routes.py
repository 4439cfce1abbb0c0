from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from dreamer.core.security import get_current_user
from dreamer.dependencies import get_db
from dreamer.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from dreamer.schemas.reservation import MessageResponse
from dreamer.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register_user(register_data: RegisterRequest, db: Session = Depends(get_db)):
    auth_service = AuthService(db)
    access_token, user = auth_service.register_user(register_data)
    return {
        "access_token": access_token,
        "token_type": "bearer",
        "role": user.role,
        "user": user,
    }


@router.post("/login", response_model=TokenResponse)
def login_user(login_data: LoginRequest, db: Session = Depends(get_db)):
    auth_service = AuthService(db)
    access_token, user = auth_service.login_user(login_data)
    return {
        "access_token": access_token,
        "token_type": "bearer",
        "role": user.role,
        "user": user,
    }


@router.post("/logout", response_model=MessageResponse)
def logout_user(
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    AuthService(db).logout(current_user)
    return {"message": "Logged out"}
