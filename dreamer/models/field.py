from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from dreamer.core.database import Base


class Field(Base):

    __tablename__ = "fields"
    __table_args__ = (
        CheckConstraint("type IN ('futbol7', 'futbol11')", name="ck_fields_type"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False)
    description = Column(Text, nullable=True)
    address = Column(String(255), nullable=True)
    location = Column(String(255), nullable=True)
    price_per_hour = Column(Numeric(8, 2), nullable=False)
    images = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    reservations = relationship(
        "Reservation",
        back_populates="field",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<Field(id={self.id}, name={self.name}, type={self.type})>"
