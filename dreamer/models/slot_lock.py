"""Row used to serialize reservation mutations on one field/date/slot."""

from sqlalchemy import Column, Date, ForeignKey, Integer

from dreamer.core.database import Base


class SlotLock(Base):

    __tablename__ = "slot_locks"

    field_id = Column(
        Integer,
        ForeignKey("fields.id", ondelete="CASCADE"),
        primary_key=True,
    )
    slot_date = Column(Date, primary_key=True)
    slot = Column(Integer, primary_key=True)

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return (
            f"<SlotLock(field_id={self.field_id}, slot_date={self.slot_date}, "
            f"slot={self.slot})>"
        )


__all__ = ["SlotLock"]
