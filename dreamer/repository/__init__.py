from . import (
    field_repository,
    payment_repository,
    reservation_repository,
    revoked_token_repository,
    slot_lock_repository,
    user_repository,
)

__all__ = [
    "field_repository",
    "payment_repository",
    "reservation_repository",
    "revoked_token_repository",
    "slot_lock_repository",
    "user_repository",
]
