import unittest
from decimal import Decimal
from itertools import count

from dreamer import models  # noqa: F401
from dreamer.core.database import Base, SessionLocal, engine
from dreamer.models.field import Field
from dreamer.models.user import User
from dreamer.schemas.reservation import ReservationUserIn

SATURDAY = "2025-06-14"
SUNDAY = "2025-06-15"
MONDAY = "2025-06-16"
TUESDAY = "2025-06-17"

_emails = count(1)


def entries(*pairs):
    return [ReservationUserIn(user_id=user_id, quantity=quantity) for user_id, quantity in pairs]


class DatabaseTestCase(unittest.TestCase):
    """Fresh schema on the in-memory database for every test."""

    def setUp(self):
        Base.metadata.create_all(bind=engine)
        self.db = SessionLocal()

    def tearDown(self):
        self.db.close()
        Base.metadata.drop_all(bind=engine)

    def make_field(self, field_type="futbol7", price="100.00", name="Cancha Norte"):
        field = Field(name=name, type=field_type, price_per_hour=Decimal(price), images=[])
        self.db.add(field)
        self.db.commit()
        self.db.refresh(field)
        return field

    def make_user(self, name="Player", role="user"):
        user = User(
            name=name,
            email=f"player{next(_emails)}@example.com",
            password_hash="not-a-real-hash",
            role=role,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def make_users(self, total):
        return [self.make_user(name=f"Player {index}") for index in range(total)]
