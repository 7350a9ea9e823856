# tests/test_conflict_checker.py
"""Unit tests for the half-open overlap rule and blocking status sets."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from conftest import at
from app.models.enums import BookingStatus
from app.services import conflict_checker
from app.services.conflict_checker import windows_overlap


class TestWindowsOverlap:
    def test_touching_windows_do_not_overlap(self):
        assert not windows_overlap(at(1, 8), at(1, 10), at(1, 10), at(1, 12))
        assert not windows_overlap(at(1, 10), at(1, 12), at(1, 8), at(1, 10))

    def test_partial_overlap(self):
        assert windows_overlap(at(1, 8), at(1, 11), at(1, 10), at(1, 12))

    def test_containment(self):
        assert windows_overlap(at(1, 9), at(1, 10), at(1, 8), at(1, 12))
        assert windows_overlap(at(1, 8), at(1, 12), at(1, 9), at(1, 10))

    def test_disjoint(self):
        assert not windows_overlap(at(1, 8), at(1, 9), at(2, 8), at(2, 9))


class TestBlockingSets:
    def test_creation_set(self):
        assert conflict_checker.creation_blocking_statuses() == {
            BookingStatus.APPROVED, BookingStatus.IN_PROGRESS,
        }

    def test_review_set_includes_pending(self):
        assert conflict_checker.review_blocking_statuses() == {
            BookingStatus.PENDING, BookingStatus.APPROVED, BookingStatus.IN_PROGRESS,
        }


class TestConflictingBookings:
    def test_approved_booking_blocks_vehicle(self, db, make_vehicle, make_booking):
        vehicle = make_vehicle()
        existing = make_booking(at(1, 8), at(1, 12), BookingStatus.APPROVED, vehicle=vehicle)

        clashes = conflict_checker.conflicting_bookings(db, "vehicle", vehicle.id, at(1, 10), at(1, 14))

        assert [b.id for b in clashes] == [existing.id]

    def test_back_to_back_trips_are_free(self, db, make_vehicle, make_booking):
        vehicle = make_vehicle()
        make_booking(at(1, 8), at(1, 10), BookingStatus.APPROVED, vehicle=vehicle)

        assert not conflict_checker.has_conflict(db, "vehicle", vehicle.id, at(1, 10), at(1, 12))

    def test_pending_only_blocks_under_review_set(self, db, make_vehicle, make_booking):
        vehicle = make_vehicle()
        make_booking(at(1, 8), at(1, 12), BookingStatus.PENDING, vehicle=vehicle)

        assert not conflict_checker.has_conflict(db, "vehicle", vehicle.id, at(1, 9), at(1, 10))
        assert conflict_checker.has_conflict(db, "vehicle", vehicle.id, at(1, 9), at(1, 10),
                                             conflict_checker.review_blocking_statuses())

    @pytest.mark.parametrize("status", [
        BookingStatus.REJECTED, BookingStatus.COMPLETED, BookingStatus.CANCELLED,
    ])
    def test_terminal_bookings_never_block(self, db, make_vehicle, make_booking, status):
        vehicle = make_vehicle()
        make_booking(at(1, 8), at(1, 12), status, vehicle=vehicle)

        assert not conflict_checker.has_conflict(db, "vehicle", vehicle.id, at(1, 9), at(1, 10),
                                                 conflict_checker.review_blocking_statuses())

    def test_excluded_booking_is_ignored(self, db, make_vehicle, make_booking):
        vehicle = make_vehicle()
        own = make_booking(at(1, 8), at(1, 12), BookingStatus.APPROVED, vehicle=vehicle)

        assert not conflict_checker.has_conflict(db, "vehicle", vehicle.id, at(1, 8), at(1, 12),
                                                 exclude_booking_id=own.id)

    def test_driver_conflicts(self, db, make_vehicle, make_driver, make_booking):
        driver = make_driver()
        make_booking(at(1, 8), at(1, 12), BookingStatus.IN_PROGRESS,
                     vehicle=make_vehicle(), driver=driver, needs_driver=True)

        assert conflict_checker.has_conflict(db, "driver", driver.id, at(1, 11), at(1, 13))
        assert not conflict_checker.has_conflict(db, "driver", driver.id, at(1, 12), at(1, 13))

    def test_other_resource_not_affected(self, db, make_vehicle, make_booking):
        busy, free = make_vehicle(), make_vehicle()
        make_booking(at(1, 8), at(1, 12), BookingStatus.APPROVED, vehicle=busy)

        assert not conflict_checker.has_conflict(db, "vehicle", free.id, at(1, 8), at(1, 12))

    def test_results_ordered_by_departure(self, db, make_vehicle, make_booking):
        vehicle = make_vehicle()
        late = make_booking(at(2, 8), at(2, 10), BookingStatus.APPROVED, vehicle=vehicle)
        early = make_booking(at(1, 8), at(1, 10), BookingStatus.APPROVED, vehicle=vehicle)

        clashes = conflict_checker.conflicting_bookings(db, "vehicle", vehicle.id, at(1, 0), at(3, 0))

        assert [b.id for b in clashes] == [early.id, late.id]

    def test_empty_blocking_set_means_no_conflict(self, db, make_vehicle, make_booking):
        vehicle = make_vehicle()
        make_booking(at(1, 8), at(1, 12), BookingStatus.APPROVED, vehicle=vehicle)

        assert conflict_checker.conflicting_bookings(db, "vehicle", vehicle.id, at(1, 8), at(1, 12), []) == []

    def test_unknown_resource_kind(self, db):
        with pytest.raises(ValueError):
            conflict_checker.conflicting_bookings(db, "trailer", 1, at(1, 8), at(1, 12))
