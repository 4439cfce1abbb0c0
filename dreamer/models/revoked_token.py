"""Revoked access tokens shared by every instance of the service."""

from sqlalchemy import Column, DateTime, String

from dreamer.core.database import Base


class RevokedToken(Base):

    __tablename__ = "revoked_tokens"

    jti = Column(String(64), primary_key=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)


__all__ = ["RevokedToken"]
