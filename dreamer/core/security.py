from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from dreamer.core.config import settings
from dreamer.dependencies import get_db
from dreamer.repository import revoked_token_repository

bearer_scheme = HTTPBearer(auto_error=False)


def _credentials_exception(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_token(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
    except JWTError as exc:
        raise _credentials_exception() from exc


def verify_token(db: Session, token: str) -> Dict[str, Any]:
    """Resolve a bearer token into ``{user_id, role, jti, exp}``.

    Raises an HTTP 401 error when the token is malformed, expired or revoked.
    """

    payload = decode_token(token)

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError) as exc:
        raise _credentials_exception() from exc

    jti = payload.get("jti")
    if not jti:
        raise _credentials_exception()

    if revoked_token_repository.is_revoked(db, jti):
        raise _credentials_exception("Token has been revoked")

    return {
        "user_id": user_id,
        "role": payload.get("role", "user"),
        "jti": jti,
        "exp": datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
        "token": token,
    }


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """Validate the bearer token and return its verified claims."""

    if credentials is None or not credentials.scheme or credentials.scheme.lower() != "bearer":
        raise _credentials_exception("Not authenticated")

    return verify_token(db, credentials.credentials)


def require_admin(current_user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    if current_user.get("role") != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator role required",
        )
    return current_user


__all__ = [
    "bearer_scheme",
    "decode_token",
    "verify_token",
    "get_current_user",
    "require_admin",
]
