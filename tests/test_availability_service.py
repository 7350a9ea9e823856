# tests/test_availability_service.py
"""Unit tests for the availability resolver."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import timedelta
from conftest import NOW, at
from app.models.enums import BookingStatus, DriverStatus, VehicleCategory, VehicleStatus
from app.services import availability_service
from app.utils.exceptions import NotFoundError, ValidationError


class TestFindAvailableVehicles:
    def test_filters_category_and_maintenance(self, db, make_vehicle):
        sedan = make_vehicle(VehicleCategory.SEDAN)
        make_vehicle(VehicleCategory.VAN)
        make_vehicle(VehicleCategory.SEDAN, status=VehicleStatus.MAINTENANCE)

        found = availability_service.find_available_vehicles(db, VehicleCategory.SEDAN, at(1, 8), at(1, 12))

        assert [v.id for v in found] == [sedan.id]

    def test_reserved_vehicle_still_offered_outside_its_booking(self, db, make_vehicle, make_booking):
        vehicle = make_vehicle(status=VehicleStatus.RESERVED)
        make_booking(at(1, 8), at(1, 12), BookingStatus.APPROVED, vehicle=vehicle)

        assert availability_service.find_available_vehicles(db, VehicleCategory.SEDAN, at(1, 9), at(1, 10)) == []
        assert len(availability_service.find_available_vehicles(
            db, VehicleCategory.SEDAN, at(2, 9), at(2, 10))) == 1

    def test_keeps_pool_order(self, db, make_vehicle, make_booking):
        first, second, third = make_vehicle(), make_vehicle(), make_vehicle()
        make_booking(at(1, 8), at(1, 12), BookingStatus.APPROVED, vehicle=second)

        found = availability_service.find_available_vehicles(db, VehicleCategory.SEDAN, at(1, 8), at(1, 12))

        assert [v.id for v in found] == [first.id, third.id]

    def test_empty_pool_is_empty_list(self, db):
        assert availability_service.find_available_vehicles(db, VehicleCategory.TRUCK, at(1, 8), at(1, 12)) == []

    def test_inverted_window_rejected(self, db):
        with pytest.raises(ValidationError):
            availability_service.find_available_vehicles(db, VehicleCategory.SEDAN, at(1, 12), at(1, 8))

    def test_has_availability(self, db, make_vehicle, make_booking):
        vehicle = make_vehicle()
        assert availability_service.has_availability(db, VehicleCategory.SEDAN, at(1, 8), at(1, 12))

        make_booking(at(1, 8), at(1, 12), BookingStatus.IN_PROGRESS, vehicle=vehicle)
        assert not availability_service.has_availability(db, VehicleCategory.SEDAN, at(1, 8), at(1, 12))


class TestFindAvailableDrivers:
    def test_excludes_irregular_and_expired(self, db, make_driver):
        ok = make_driver()
        make_driver(status=DriverStatus.IRREGULAR)
        make_driver(license_expiry=NOW.date())                     # expires at midnight today
        make_driver(exam_date=NOW.date() - timedelta(days=800))   # exam older than two years

        found = availability_service.find_available_drivers(db, None, at(1, 8), at(1, 12), now=NOW)

        assert [d.id for d in found] == [ok.id]

    def test_license_category_filter(self, db, make_driver):
        make_driver("B")
        truck = make_driver("D")

        found = availability_service.find_available_drivers(db, "D", at(1, 8), at(1, 12), now=NOW)

        assert [d.id for d in found] == [truck.id]

    def test_busy_driver_is_a_candidate_when_free_in_window(self, db, make_driver):
        driver = make_driver(status=DriverStatus.BUSY)

        found = availability_service.find_available_drivers(db, None, at(1, 8), at(1, 12), now=NOW)

        assert [d.id for d in found] == [driver.id]

    def test_driver_with_overlapping_booking_excluded(self, db, make_driver, make_vehicle, make_booking):
        driver = make_driver()
        make_booking(at(1, 8), at(1, 12), BookingStatus.APPROVED,
                     vehicle=make_vehicle(), driver=driver, needs_driver=True)

        assert availability_service.find_available_drivers(db, None, at(1, 10), at(1, 11), now=NOW) == []


class TestAllocationCandidates:
    def test_review_set_blocks_pending_allocations(self, db, make_vehicle, make_driver, make_booking):
        held, free = make_vehicle(), make_vehicle()
        driver = make_driver()
        make_booking(at(1, 8), at(1, 12), BookingStatus.PENDING, vehicle=held, driver=driver)
        target = make_booking(at(1, 9), at(1, 11))

        candidates = availability_service.list_allocation_candidates(db, target.id, now=NOW)

        assert candidates.booking_id == target.id
        assert [v.id for v in candidates.vehicles] == [free.id]
        assert candidates.drivers == []

    def test_booking_does_not_block_itself(self, db, make_vehicle, make_booking):
        vehicle = make_vehicle()
        target = make_booking(at(1, 8), at(1, 12), BookingStatus.PENDING, vehicle=vehicle)

        candidates = availability_service.list_allocation_candidates(db, target.id, now=NOW)

        assert [v.id for v in candidates.vehicles] == [vehicle.id]

    def test_drivers_of_any_category(self, db, make_driver, make_booking):
        make_driver("B")
        make_driver("E")
        target = make_booking()

        candidates = availability_service.list_allocation_candidates(db, target.id, now=NOW)

        assert len(candidates.drivers) == 2

    def test_vehicles_limited_to_requested_category(self, db, make_vehicle, make_booking):
        make_vehicle(VehicleCategory.VAN)
        target = make_booking(category=VehicleCategory.SEDAN)

        assert availability_service.list_allocation_candidates(db, target.id, now=NOW).vehicles == []

    def test_unknown_booking(self, db):
        with pytest.raises(NotFoundError):
            availability_service.list_allocation_candidates(db, 999)
