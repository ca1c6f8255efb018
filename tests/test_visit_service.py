import threading
import unittest
import uuid
from datetime import datetime, timedelta, timezone
from unittest import mock

from sqlalchemy.exc import IntegrityError

from colmena.core.config import settings
from colmena.core.errors import (
    ConcurrentTransitionError,
    InvalidStateTransition,
    NotFoundError,
    VisitExpiredError,
)
from colmena.models import UserRole, Visit, VisitState
from colmena.repositories import visit_repository
from colmena.services import visit_service as visit_service_module
from colmena.models.visit import as_utc
from colmena.services.visit_service import VisitService
from tests.base import DatabaseTestCase


class TestCreateVisit(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.service = VisitService(self.db)
        self.resident_user = self.users[UserRole.RESIDENT]

    def test_new_visit_is_pending_with_token(self):
        visit = self.service.create_visit(self.resident_user, self.visit_data())

        self.assertEqual(visit.state, VisitState.PENDING)
        self.assertIsNone(visit.arrived_at)
        self.assertIsNone(visit.departed_at)
        self.assertEqual(visit.visitor_name, "Jane Doe")
        self.assertEqual(visit.condominium_id, self.condominium.id)
        self.assertEqual(visit.resident_id, self.resident.id)
        self.assertRegex(visit.qr_token, r"^[0-9a-f]{32}$")
        self.assertIsNotNone(visit.created_at)

    def test_tokens_are_unique(self):
        tokens = {
            self.service.create_visit(self.resident_user, self.visit_data()).qr_token
            for _ in range(20)
        }
        self.assertEqual(len(tokens), 20)

    def test_duplicate_visits_for_same_visitor_are_allowed(self):
        data = self.visit_data()
        first = self.service.create_visit(self.resident_user, data)
        second = self.service.create_visit(self.resident_user, data)
        self.assertNotEqual(first.id, second.id)
        self.assertNotEqual(first.qr_token, second.qr_token)

    def test_family_member_and_notes_are_stored(self):
        visit = self.service.create_visit(
            self.resident_user,
            self.visit_data(family_member_id=self.family_member.id, notes="Brings a package"),
        )
        self.assertEqual(visit.family_member_id, self.family_member.id)
        self.assertEqual(visit.notes, "Brings a package")

    def test_expected_at_is_stored_in_utc(self):
        local = datetime(2026, 10, 18, 9, 0, tzinfo=timezone(timedelta(hours=-6)))
        visit = self.service.create_visit(self.resident_user, self.visit_data(expected_at=local))
        self.assertEqual(as_utc(visit.expected_at), datetime(2026, 10, 18, 15, 0, tzinfo=timezone.utc))

    def test_unknown_condominium(self):
        with self.assertRaises(NotFoundError) as ctx:
            self.service.create_visit(self.resident_user, self.visit_data(condominium_id=uuid.uuid4()))
        self.assertEqual(ctx.exception.message, "Condominium not found")

    def test_unknown_resident_persists_nothing(self):
        with self.assertRaises(NotFoundError) as ctx:
            self.service.create_visit(self.resident_user, self.visit_data(resident_id=uuid.uuid4()))
        self.assertEqual(ctx.exception.message, "Resident not found")
        self.assertEqual(self.db.query(Visit).count(), 0)

    def test_unknown_family_member(self):
        with self.assertRaises(NotFoundError) as ctx:
            self.service.create_visit(self.resident_user, self.visit_data(family_member_id=uuid.uuid4()))
        self.assertEqual(ctx.exception.message, "Family member not found")
        self.assertEqual(self.db.query(Visit).count(), 0)

    def test_token_collision_is_regenerated(self):
        existing = self.service.create_visit(self.resident_user, self.visit_data())
        tokens = iter([existing.qr_token, "f" * 32])

        with mock.patch.object(visit_service_module, "generate_qr_token", side_effect=lambda: next(tokens)):
            visit = self.service.create_visit(self.resident_user, self.visit_data())

        self.assertEqual(visit.qr_token, "f" * 32)
        self.assertEqual(self.db.query(Visit).count(), 2)

    def test_integrity_errors_other_than_collisions_propagate(self):
        with mock.patch.object(visit_repository, "insert", side_effect=IntegrityError("INSERT", {}, Exception("fk"))):
            with self.assertRaises(IntegrityError):
                self.service.create_visit(self.resident_user, self.visit_data())


class TestScan(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.service = VisitService(self.db)
        self.guard = self.users[UserRole.SECURITY_WORKER]
        self.visit = self.service.create_visit(self.users[UserRole.RESIDENT], self.visit_data())

    def test_full_lifecycle(self):
        arrival = self.service.scan(self.guard, self.visit.qr_token)
        self.assertEqual(arrival.new_state, VisitState.ARRIVED)
        self.assertEqual(arrival.visit.state, VisitState.ARRIVED)
        self.assertIsNotNone(arrival.visit.arrived_at)
        self.assertGreaterEqual(arrival.visit.arrived_at, arrival.visit.created_at)
        self.assertIsNone(arrival.visit.departed_at)
        arrived_at = arrival.visit.arrived_at

        departure = self.service.scan(self.guard, self.visit.qr_token)
        self.assertEqual(departure.new_state, VisitState.DEPARTED)
        self.assertEqual(departure.visit.state, VisitState.DEPARTED)
        self.assertIsNotNone(departure.visit.departed_at)
        self.assertGreaterEqual(departure.visit.departed_at, arrived_at)
        self.assertEqual(departure.visit.arrived_at, arrived_at)

        with self.assertRaises(InvalidStateTransition):
            self.service.scan(self.guard, self.visit.qr_token)

        stored = visit_repository.find_by_id(self.db, self.visit.id)
        self.assertEqual(stored.state, VisitState.DEPARTED)
        self.assertEqual(stored.arrived_at, arrived_at)
        self.assertEqual(stored.departed_at, departure.visit.departed_at)

    def test_departed_visit_is_rejected_every_time(self):
        self.service.scan(self.guard, self.visit.qr_token)
        departed_at = self.service.scan(self.guard, self.visit.qr_token).visit.departed_at

        for _ in range(3):
            with self.assertRaises(InvalidStateTransition) as ctx:
                self.service.scan(self.guard, self.visit.qr_token)
            self.assertEqual(ctx.exception.current_state, "departed")

        stored = visit_repository.find_by_id(self.db, self.visit.id)
        self.assertEqual(stored.departed_at, departed_at)

    def test_unknown_token(self):
        with self.assertRaises(NotFoundError) as ctx:
            self.service.scan(self.guard, "deadbeef")
        self.assertEqual(ctx.exception.message, "Invalid QR token or visit not found")

    def test_resident_snapshot(self):
        result = self.service.scan(self.guard, self.visit.qr_token)
        self.assertEqual(result.resident.name, "Maria Lopez")
        self.assertEqual(result.resident.unit_id, self.unit.id)
        self.assertEqual(result.resident.unit_number, "A-101")

    def test_resident_snapshot_without_unit(self):
        self.resident.unit_id = None
        self.db.commit()
        result = self.service.scan(self.guard, self.visit.qr_token)
        self.assertEqual(result.resident.name, "Maria Lopez")
        self.assertIsNone(result.resident.unit_id)
        self.assertIsNone(result.resident.unit_number)

    def test_timestamps_follow_state(self):
        def check(visit):
            self.assertIn(visit.state, set(VisitState))
            self.assertEqual(visit.arrived_at is not None, visit.state in (VisitState.ARRIVED, VisitState.DEPARTED))
            self.assertEqual(visit.departed_at is not None, visit.state == VisitState.DEPARTED)

        check(visit_repository.find_by_id(self.db, self.visit.id))
        check(self.service.scan(self.guard, self.visit.qr_token).visit)
        check(self.service.scan(self.guard, self.visit.qr_token).visit)


class TestConcurrentScans(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.guard = self.users[UserRole.SECURITY_WORKER]
        self.visit = VisitService(self.db).create_visit(self.users[UserRole.RESIDENT], self.visit_data())

    def test_stale_read_loses_the_race(self):
        loser_db = self.Session()
        self.addCleanup(loser_db.close)
        stale = visit_repository.find_by_token(loser_db, self.visit.qr_token)
        self.assertEqual(stale.state, VisitState.PENDING)

        winner = VisitService(self.db).scan(self.guard, self.visit.qr_token)
        self.assertEqual(winner.new_state, VisitState.ARRIVED)

        with mock.patch.object(visit_repository, "find_by_token", return_value=stale):
            with self.assertRaises(ConcurrentTransitionError):
                VisitService(loser_db).scan(self.guard, self.visit.qr_token)

        stored = visit_repository.find_by_id(self.db, self.visit.id)
        self.assertEqual(stored.state, VisitState.ARRIVED)
        self.assertEqual(stored.arrived_at, winner.visit.arrived_at)
        self.assertIsNone(stored.departed_at)

    def test_conditional_update_matches_once(self):
        now = datetime.now(timezone.utc)
        values = {"state": VisitState.ARRIVED, "arrived_at": now}
        self.assertTrue(visit_repository.update_state(self.db, self.visit.id, VisitState.PENDING, values))
        self.assertFalse(visit_repository.update_state(self.db, self.visit.id, VisitState.PENDING, values))

    def test_simultaneous_scans_never_record_two_arrivals(self):
        barrier = threading.Barrier(2)
        outcomes = []
        lock = threading.Lock()

        def scan():
            db = self.Session()
            try:
                barrier.wait()
                result = VisitService(db).scan(self.guard, self.visit.qr_token)
                outcome = result.new_state
            except Exception as e:
                outcome = e
            finally:
                db.close()
            with lock:
                outcomes.append(outcome)

        threads = [threading.Thread(target=scan) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        self.assertEqual(len(outcomes), 2)
        self.assertEqual(outcomes.count(VisitState.ARRIVED), 1, repr(outcomes))
        other = next(o for o in outcomes if o is not VisitState.ARRIVED)
        if isinstance(other, Exception):
            self.assertIsInstance(other, ConcurrentTransitionError, repr(other))
        else:
            self.assertIs(other, VisitState.DEPARTED)

        stored = visit_repository.find_by_id(self.db, self.visit.id)
        self.assertIsNotNone(stored.arrived_at)


class TestPendingExpiry(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.service = VisitService(self.db)
        self.guard = self.users[UserRole.SECURITY_WORKER]
        self.late_visit = self.service.create_visit(
            self.users[UserRole.RESIDENT],
            self.visit_data(expected_at=datetime.now(timezone.utc) - timedelta(hours=10)),
        )

    def test_tokens_never_expire_by_default(self):
        self.assertIsNone(settings.visit_pending_ttl_hours)
        result = self.service.scan(self.guard, self.late_visit.qr_token)
        self.assertEqual(result.new_state, VisitState.ARRIVED)

    def test_pending_visit_past_window_is_rejected(self):
        with mock.patch.object(settings, "visit_pending_ttl_hours", 2):
            with self.assertRaises(VisitExpiredError):
                self.service.scan(self.guard, self.late_visit.qr_token)

        stored = visit_repository.find_by_id(self.db, self.late_visit.id)
        self.assertEqual(stored.state, VisitState.PENDING)
        self.assertIsNone(stored.arrived_at)

    def test_pending_visit_inside_window_is_accepted(self):
        with mock.patch.object(settings, "visit_pending_ttl_hours", 24):
            result = self.service.scan(self.guard, self.late_visit.qr_token)
        self.assertEqual(result.new_state, VisitState.ARRIVED)

    def test_arrived_visit_can_always_leave(self):
        self.service.scan(self.guard, self.late_visit.qr_token)
        with mock.patch.object(settings, "visit_pending_ttl_hours", 2):
            result = self.service.scan(self.guard, self.late_visit.qr_token)
        self.assertEqual(result.new_state, VisitState.DEPARTED)


class TestQueries(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.service = VisitService(self.db)
        self.admin = self.users[UserRole.ADMIN]

    def test_get_visit(self):
        visit = self.service.create_visit(self.admin, self.visit_data())
        self.assertEqual(self.service.get_visit(self.admin, visit.id).qr_token, visit.qr_token)

    def test_get_unknown_visit(self):
        with self.assertRaises(NotFoundError) as ctx:
            self.service.get_visit(self.admin, uuid.uuid4())
        self.assertEqual(ctx.exception.message, "Visit not found")

    def test_lists_follow_insertion_order(self):
        names = ["First", "Second", "Third"]
        for name in names:
            self.service.create_visit(self.admin, self.visit_data(visitor_name=name))

        by_condo = self.service.list_by_condominium(self.admin, self.condominium.id)
        by_resident = self.service.list_by_resident(self.admin, self.resident.id)
        self.assertEqual([v.visitor_name for v in by_condo], names)
        self.assertEqual([v.visitor_name for v in by_resident], names)

    def test_lists_are_empty_for_unknown_ids(self):
        self.service.create_visit(self.admin, self.visit_data())
        self.assertEqual(self.service.list_by_condominium(self.admin, uuid.uuid4()), [])
        self.assertEqual(self.service.list_by_resident(self.admin, uuid.uuid4()), [])


if __name__ == "__main__":
    unittest.main()
