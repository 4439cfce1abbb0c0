from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    func,
)
from sqlalchemy.orm import relationship

from dreamer.core.database import Base


class Reservation(Base):
    """Groups the occupancy entries of one field at one date and slot."""

    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint("slot BETWEEN 1 AND 4", name="ck_reservations_slot"),
        Index("ix_reservations_slot_key", "field_id", "date", "slot"),
    )

    id = Column(Integer, primary_key=True, index=True)
    field_id = Column(
        Integer,
        ForeignKey("fields.id", ondelete="CASCADE"),
        nullable=False,
    )
    date = Column(Date, nullable=False)
    slot = Column(Integer, nullable=False)
    # Slot window on ``date``; kept for clients that still read the legacy columns.
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    total_price = Column(Numeric(8, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    field = relationship("Field", back_populates="reservations")
    users = relationship(
        "ReservationUser",
        back_populates="reservation",
        cascade="all, delete-orphan",
        order_by="ReservationUser.user_id",
    )

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return (
            f"<Reservation(id={self.id}, field_id={self.field_id}, "
            f"date={self.date}, slot={self.slot})>"
        )


class ReservationUser(Base):
    """Number of places a user claims inside a reservation."""

    __tablename__ = "reservation_users"
    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_reservation_users_quantity"),
    )

    reservation_id = Column(
        Integer,
        ForeignKey("reservations.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    quantity = Column(Integer, nullable=False, default=1)

    reservation = relationship("Reservation", back_populates="users")
    user = relationship("User", back_populates="reservation_links")

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return (
            f"<ReservationUser(reservation_id={self.reservation_id}, "
            f"user_id={self.user_id}, quantity={self.quantity})>"
        )
