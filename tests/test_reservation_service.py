import unittest
from decimal import Decimal
from unittest import mock

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from dreamer.core.exceptions import (
    CapacityExceededError,
    InternalError,
    InvalidSlotError,
    NotFoundError,
    ResourceExhaustedError,
)
from dreamer.models.reservation import Reservation
from dreamer.models.slot_lock import SlotLock
from dreamer.services.reservation_service import ReservationService, merge_quantities
from tests.helpers import MONDAY, SATURDAY, SUNDAY, TUESDAY, DatabaseTestCase, entries


class MergeQuantitiesTest(unittest.TestCase):
    def test_repeated_users_accumulate(self):
        self.assertEqual(merge_quantities(entries((1, 2), (2, 1), (1, 3))), {1: 5, 2: 1})


class CreateReservationTest(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.service = ReservationService(self.db)
        self.field = self.make_field("futbol7", price="50.00")
        self.a, self.b, self.c = self.make_users(3)

    def test_full_slot_is_accepted(self):
        result = self.service.create_reservation(
            self.field.id, SATURDAY, 1, entries((self.a.id, 7), (self.b.id, 7))
        )

        self.assertEqual(result["plazasDisponibles"], 0)
        self.assertEqual(result["total_price"], Decimal("700.00"))
        reservation = self.service.get_reservation(result["reservation_id"])
        self.assertEqual(reservation.slot, 1)
        self.assertEqual([link.quantity for link in reservation.users], [7, 7])
        self.assertEqual(reservation.start_time.hour, 9)
        self.assertEqual(reservation.end_time.minute, 30)

    def test_one_over_capacity_is_rejected(self):
        with self.assertRaises(CapacityExceededError) as ctx:
            self.service.create_reservation(
                self.field.id, SATURDAY, 1, entries((self.a.id, 8), (self.b.id, 7))
            )

        error = ctx.exception
        self.assertEqual(error.status_code, 409)
        self.assertEqual(
            error.as_dict(),
            {
                "detail": error.detail,
                "maxUsers": 14,
                "plazasDisponibles": 14,
                "plazasSolicitadas": 15,
                "plazasReservadas": 0,
            },
        )
        self.assertEqual(self.db.query(Reservation).count(), 0)

    def test_capacity_plus_one_reports_no_room_left(self):
        self.service.create_reservation(self.field.id, SATURDAY, 1, entries((self.a.id, 14)))

        with self.assertRaises(CapacityExceededError) as ctx:
            self.service.create_reservation(self.field.id, SATURDAY, 1, entries((self.b.id, 1)))

        self.assertEqual(ctx.exception.as_dict()["plazasDisponibles"], 0)
        self.assertEqual(ctx.exception.as_dict()["plazasReservadas"], 14)

    def test_other_slots_and_days_are_independent(self):
        self.service.create_reservation(self.field.id, SATURDAY, 1, entries((self.a.id, 14)))

        second = self.service.create_reservation(self.field.id, SATURDAY, 2, entries((self.b.id, 14)))
        third = self.service.create_reservation(self.field.id, SUNDAY, 1, entries((self.c.id, 14)))

        self.assertEqual(second["plazasDisponibles"], 0)
        self.assertEqual(third["plazasDisponibles"], 0)

    def test_separate_reservations_share_the_slot(self):
        field = self.make_field("futbol11", price="80.00", name="Cancha Sur")

        first = self.service.create_reservation(field.id, SUNDAY, 3, entries((self.a.id, 10)))
        second = self.service.create_reservation(field.id, SUNDAY, 3, entries((self.b.id, 12)))

        self.assertEqual(first["plazasDisponibles"], 12)
        self.assertEqual(second["plazasDisponibles"], 0)
        with self.assertRaises(CapacityExceededError) as ctx:
            self.service.create_reservation(field.id, SUNDAY, 3, entries((self.c.id, 1)))
        self.assertEqual(ctx.exception.as_dict()["plazasReservadas"], 22)
        self.assertEqual(ctx.exception.as_dict()["maxUsers"], 22)

    def test_weekday_is_rejected_before_touching_storage(self):
        db = mock.MagicMock()
        service = ReservationService(db)

        with self.assertRaises(InvalidSlotError):
            service.create_reservation(self.field.id, MONDAY, 1, entries((self.a.id, 1)))

        self.assertEqual(db.mock_calls, [])

    def test_tuesday_and_bad_slot_are_invalid(self):
        with self.assertRaises(InvalidSlotError):
            self.service.create_reservation(self.field.id, TUESDAY, 2, entries((self.a.id, 1)))
        with self.assertRaises(InvalidSlotError):
            self.service.create_reservation(self.field.id, SATURDAY, 5, entries((self.a.id, 1)))

    def test_unknown_field(self):
        with self.assertRaises(NotFoundError):
            self.service.create_reservation(999, SATURDAY, 1, entries((self.a.id, 1)))

    def test_unknown_user(self):
        with self.assertRaises(NotFoundError) as ctx:
            self.service.create_reservation(self.field.id, SATURDAY, 1, entries((999, 1)))
        self.assertIn("999", ctx.exception.detail)

    def test_slot_lock_row_is_created_once(self):
        self.service.create_reservation(self.field.id, SATURDAY, 1, entries((self.a.id, 1)))
        self.service.create_reservation(self.field.id, SATURDAY, 1, entries((self.b.id, 1)))

        self.assertEqual(self.db.query(SlotLock).count(), 1)


class ReservationUsersTest(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.service = ReservationService(self.db)
        self.field = self.make_field("futbol7", price="10.00")
        self.a, self.b, self.c, self.d = self.make_users(4)
        created = self.service.create_reservation(
            self.field.id, SATURDAY, 1, entries((self.a.id, 7), (self.b.id, 7))
        )
        self.reservation_id = created["reservation_id"]

    def quantities(self, reservation_id=None):
        reservation = self.service.get_reservation(reservation_id or self.reservation_id)
        return {link.user_id: link.quantity for link in reservation.users}

    def test_add_to_full_slot_is_rejected(self):
        with self.assertRaises(CapacityExceededError) as ctx:
            self.service.add_users(self.reservation_id, entries((self.c.id, 1)))

        payload = ctx.exception.as_dict()
        self.assertEqual(payload["plazasReservadas"], 14)
        self.assertEqual(payload["plazasSolicitadas"], 1)
        self.assertEqual(payload["plazasDisponibles"], 0)
        self.assertEqual(self.quantities(), {self.a.id: 7, self.b.id: 7})

    def test_removing_frees_room_for_new_users(self):
        self.service.remove_users(self.reservation_id, [self.b.id])
        reservation = self.service.add_users(self.reservation_id, entries((self.c.id, 7)))

        self.assertEqual(self.quantities(), {self.a.id: 7, self.c.id: 7})
        self.assertEqual(reservation.total_price, Decimal("140.00"))

    def test_add_increases_existing_quantity(self):
        self.service.remove_users(self.reservation_id, [self.b.id])
        self.service.add_users(self.reservation_id, entries((self.a.id, 2)))
        self.service.add_users(self.reservation_id, entries((self.a.id, 3)))

        self.assertEqual(self.quantities(), {self.a.id: 12})

    def test_remove_users_twice_never_double_decrements(self):
        self.service.remove_users(self.reservation_id, [self.b.id])
        self.service.remove_users(self.reservation_id, [self.b.id])

        self.assertEqual(self.quantities(), {self.a.id: 7})
        occupancy = self.service.get_occupancy(self.field.id, SATURDAY, 1)
        self.assertEqual(occupancy["occupied"], 7)

    def test_remove_single_user_missing_is_not_found(self):
        self.service.remove_user(self.reservation_id, self.b.id)

        with self.assertRaises(NotFoundError):
            self.service.remove_user(self.reservation_id, self.b.id)
        self.assertEqual(self.quantities(), {self.a.id: 7})

    def test_replace_resets_users_and_checks_other_reservations(self):
        self.service.remove_users(self.reservation_id, [self.b.id])
        other = self.service.create_reservation(self.field.id, SATURDAY, 1, entries((self.c.id, 4)))

        with self.assertRaises(CapacityExceededError) as ctx:
            self.service.replace_users(self.reservation_id, entries((self.b.id, 11)))
        self.assertEqual(ctx.exception.as_dict()["plazasReservadas"], 11)
        self.assertEqual(ctx.exception.as_dict()["plazasSolicitadas"], 4)

        reservation = self.service.replace_users(self.reservation_id, entries((self.b.id, 10)))
        self.assertEqual(self.quantities(), {self.b.id: 10})
        self.assertEqual(reservation.total_price, Decimal("100.00"))
        self.assertEqual(self.quantities(other["reservation_id"]), {self.c.id: 4})

    def test_shrinking_a_full_slot_is_allowed(self):
        self.service.replace_users(self.reservation_id, entries((self.a.id, 3)))

        self.assertEqual(self.quantities(), {self.a.id: 3})

    def test_patch_adds_then_removes(self):
        self.service.patch_users(
            self.reservation_id,
            add_users=entries((self.c.id, 5)),
            remove_user_ids=[self.b.id],
        )

        self.assertEqual(self.quantities(), {self.a.id: 7, self.c.id: 5})

    def test_patch_over_capacity_is_rejected(self):
        with self.assertRaises(CapacityExceededError):
            self.service.patch_users(
                self.reservation_id,
                add_users=entries((self.c.id, 8)),
                remove_user_ids=[self.b.id],
            )
        self.assertEqual(self.quantities(), {self.a.id: 7, self.b.id: 7})

    def test_empty_reservation_is_kept(self):
        reservation = self.service.remove_users(self.reservation_id, [self.a.id, self.b.id])

        self.assertEqual(reservation.users, [])
        self.assertEqual(reservation.total_price, Decimal("0.00"))
        self.service.add_users(self.reservation_id, entries((self.d.id, 14)))
        self.assertEqual(self.quantities(), {self.d.id: 14})

    def test_unknown_reservation(self):
        with self.assertRaises(NotFoundError):
            self.service.add_users(999, entries((self.c.id, 1)))
        with self.assertRaises(NotFoundError):
            self.service.remove_users(999, [self.a.id])

    def test_adding_unknown_user(self):
        self.service.remove_users(self.reservation_id, [self.b.id])
        with self.assertRaises(NotFoundError):
            self.service.add_users(self.reservation_id, entries((999, 1)))

    def test_delete_reservation_frees_the_slot(self):
        self.service.delete_reservation(self.reservation_id)

        with self.assertRaises(NotFoundError):
            self.service.get_reservation(self.reservation_id)
        self.assertEqual(self.service.get_occupancy(self.field.id, SATURDAY, 1)["occupied"], 0)

    def test_storage_failure_is_an_internal_error(self):
        failure = OperationalError("SELECT", {}, Exception("disk I/O error"))
        with mock.patch(
            "dreamer.services.reservation_service.reservation_repository.slot_occupancy",
            side_effect=failure,
        ):
            with self.assertRaises(InternalError) as ctx:
                self.service.add_users(self.reservation_id, entries((self.c.id, 1)))

        self.assertEqual(ctx.exception.status_code, 500)

    def test_pool_timeout_is_resource_exhausted(self):
        with mock.patch(
            "dreamer.services.reservation_service.slot_lock_repository.acquire_slot_lock",
            side_effect=PoolTimeoutError("QueuePool limit reached"),
        ):
            with self.assertRaises(ResourceExhaustedError) as ctx:
                self.service.remove_users(self.reservation_id, [self.a.id])

        self.assertEqual(ctx.exception.status_code, 503)

    def delete_before_lock_is_granted(self, db, **slot_key):
        db.execute(
            text("DELETE FROM reservation_users WHERE reservation_id = :id"),
            {"id": self.reservation_id},
        )
        db.execute(text("DELETE FROM reservations WHERE id = :id"), {"id": self.reservation_id})

    def test_reservation_deleted_while_waiting_for_lock(self):
        with mock.patch(
            "dreamer.services.reservation_service.slot_lock_repository.acquire_slot_lock",
            side_effect=self.delete_before_lock_is_granted,
        ):
            with self.assertRaises(NotFoundError):
                self.service.remove_users(self.reservation_id, [self.a.id])
            with self.assertRaises(NotFoundError):
                self.service.delete_reservation(self.reservation_id)

        self.assertEqual(self.quantities(), {self.a.id: 7, self.b.id: 7})


class OccupancyTest(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.service = ReservationService(self.db)
        self.field = self.make_field("futbol11")
        self.a, self.b = self.make_users(2)

    def test_occupancy_aggregates_reservations(self):
        self.service.create_reservation(self.field.id, SUNDAY, 2, entries((self.a.id, 5)))
        self.service.create_reservation(self.field.id, SUNDAY, 2, entries((self.b.id, 6)))

        occupancy = self.service.get_occupancy(self.field.id, SUNDAY, 2)

        self.assertEqual(occupancy["occupied"], 11)
        self.assertEqual(occupancy["capacity"], 22)
        self.assertEqual(occupancy["available"], 11)

    def test_availability_lists_every_slot(self):
        self.service.create_reservation(self.field.id, SATURDAY, 4, entries((self.a.id, 20)))

        availability = self.service.list_field_availability(self.field.id, SATURDAY)

        self.assertEqual([slot["slot"] for slot in availability["slots"]], [1, 2, 3, 4])
        self.assertEqual(availability["slots"][3]["available"], 2)
        self.assertEqual(availability["slots"][0]["occupied"], 0)

    def test_availability_on_weekday_is_invalid(self):
        with self.assertRaises(InvalidSlotError):
            self.service.list_field_availability(self.field.id, MONDAY)

    def test_list_reservations_applies_filters(self):
        other_field = self.make_field("futbol7", name="Cancha Este")
        first = self.service.create_reservation(self.field.id, SATURDAY, 1, entries((self.a.id, 2)))
        second = self.service.create_reservation(other_field.id, SATURDAY, 1, entries((self.b.id, 2)))

        by_field = self.service.list_reservations(field_id=self.field.id)
        by_user = self.service.list_reservations(user_id=self.b.id)

        self.assertEqual([item.id for item in by_field], [first["reservation_id"]])
        self.assertEqual([item.id for item in by_user], [second["reservation_id"]])
        self.assertEqual(self.service.list_reservations(page=2), [])

    def test_occupancy_of_unknown_field(self):
        with self.assertRaises(NotFoundError):
            self.service.get_occupancy(999, SATURDAY, 1)


if __name__ == "__main__":
    unittest.main()
