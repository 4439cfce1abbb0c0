from datetime import datetime

from sqlalchemy.orm import Session

from dreamer.models.revoked_token import RevokedToken


def is_revoked(db: Session, jti: str) -> bool:
    return db.query(RevokedToken.jti).filter(RevokedToken.jti == jti).first() is not None


def revoke(db: Session, jti: str, expires_at: datetime) -> None:
    if db.get(RevokedToken, jti) is None:
        db.add(RevokedToken(jti=jti, expires_at=expires_at))
    db.flush()


def purge_expired(db: Session, now: datetime) -> int:
    deleted = (
        db.query(RevokedToken)
        .filter(RevokedToken.expires_at <= now)
        .delete(synchronize_session=False)
    )
    db.flush()
    return deleted
