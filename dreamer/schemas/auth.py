from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, StringConstraints


NameStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=255),
]
PasswordStr = Annotated[str, StringConstraints(min_length=6, max_length=72)]


class RegisterRequest(BaseModel):
    name: NameStr
    email: EmailStr
    password: PasswordStr


class LoginRequest(BaseModel):
    email: EmailStr
    password: Annotated[str, StringConstraints(min_length=1, max_length=72)]


class UserUpdateRequest(BaseModel):
    """Partial update: only the fields present in the request are applied."""

    name: Optional[NameStr] = None
    email: Optional[EmailStr] = None
    password: Optional[PasswordStr] = None


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: EmailStr
    role: str
    created_at: Optional[datetime] = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: str
    user: UserResponse
