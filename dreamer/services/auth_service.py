import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Tuple

from fastapi import HTTPException, status
from jose import jwt
from passlib.context import CryptContext
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dreamer.core.config import settings
from dreamer.core.exceptions import InternalError
from dreamer.models.user import User
from dreamer.repository import revoked_token_repository, user_repository
from dreamer.schemas.auth import LoginRequest, RegisterRequest

logger = logging.getLogger(__name__)

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ROLE_ADMIN = "admin"
ROLE_USER = "user"


def role_for_email(email: str) -> str:
    """Role granted to an account with this email.

    Addresses on the configured admin domain are administrators; everyone
    else is a regular user. Registration and every email update go through
    this function.
    """

    domain = email.rsplit("@", 1)[-1].strip().lower()
    if domain == settings.ADMIN_EMAIL_DOMAIN.lower():
        return ROLE_ADMIN
    return ROLE_USER


def hash_password(password: str) -> str:
    return _pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return _pwd_context.verify(password, password_hash)


class AuthService:
    def __init__(self, db: Session):
        self.db = db

    def register_user(self, register_data: RegisterRequest) -> Tuple[str, User]:
        existing_user = user_repository.get_user_by_email(self.db, register_data.email)
        if existing_user:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already registered",
            )

        new_user = User(
            name=register_data.name,
            email=register_data.email,
            password_hash=hash_password(register_data.password),
            role=role_for_email(register_data.email),
        )

        try:
            user_repository.create_user(self.db, new_user)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Could not register user %s", register_data.email)
            raise InternalError("Unexpected error while saving user") from exc

        self.db.refresh(new_user)
        logger.info("Registered user %s with role %s", new_user.id, new_user.role)
        return self._create_access_token(new_user), new_user

    def login_user(self, login_data: LoginRequest) -> Tuple[str, User]:
        user = user_repository.get_user_by_email(self.db, login_data.email)
        if not user or not verify_password(login_data.password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password",
            )

        return self._create_access_token(user), user

    def logout(self, claims: Dict[str, Any]) -> None:
        """Revoke the token described by ``claims`` until it would expire anyway."""

        now = datetime.now(timezone.utc)
        try:
            revoked_token_repository.purge_expired(self.db, now)
            revoked_token_repository.revoke(self.db, claims["jti"], claims["exp"])
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Could not revoke token for user %s", claims.get("user_id"))
            raise InternalError("Could not complete logout") from exc

        logger.info("Revoked token for user %s", claims.get("user_id"))

    def _create_access_token(self, user: User) -> str:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )
        to_encode = {
            "sub": str(user.id),
            "role": user.role,
            "name": user.name,
            "email": user.email,
            "jti": uuid.uuid4().hex,
            "exp": expire,
        }
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
