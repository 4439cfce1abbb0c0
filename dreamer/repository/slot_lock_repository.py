"""Per-slot row locks used by the capacity allocator."""

from __future__ import annotations

from datetime import date

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from dreamer.models.slot_lock import SlotLock

_INSERT_BUILDERS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def acquire_slot_lock(
    db: Session,
    *,
    field_id: int,
    slot_date: date,
    slot: int,
) -> SlotLock:
    """Lock the ``(field_id, slot_date, slot)`` key until the transaction ends.

    The lock row is created on first use with ``ON CONFLICT DO NOTHING`` so two
    requests racing on a fresh key end up waiting on the same row.
    """

    dialect_name = db.get_bind().dialect.name
    insert_builder = _INSERT_BUILDERS.get(dialect_name)
    if insert_builder is None:
        raise RuntimeError(f"Slot locking is not supported on {dialect_name!r}")

    statement = (
        insert_builder(SlotLock)
        .values(field_id=field_id, slot_date=slot_date, slot=slot)
        .on_conflict_do_nothing(index_elements=["field_id", "slot_date", "slot"])
    )
    db.execute(statement)

    return (
        db.query(SlotLock)
        .filter(SlotLock.field_id == field_id)
        .filter(SlotLock.slot_date == slot_date)
        .filter(SlotLock.slot == slot)
        .with_for_update()
        .one()
    )


__all__ = ["acquire_slot_lock"]
