# tests/test_dashboard_service.py
"""Unit tests for admin queries: per-resource usage and registry paging."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import datetime
from unittest.mock import patch
from conftest import NOW, at
from app.config import settings
from app.models.enums import BookingStatus, DriverStatus, VehicleStatus
from app.services import dashboard_service
from app.utils.exceptions import ValidationError
from app.utils.pagination import paginate


class TestResourceUsage:
    def test_vehicle_usage(self, db, make_vehicle, make_booking):
        vehicle = make_vehicle(status=VehicleStatus.IN_USE)
        done = make_booking(status=BookingStatus.COMPLETED, vehicle=vehicle,
                            departure=at(-10, 8), arrival=at(-10, 17))
        make_booking(status=BookingStatus.COMPLETED, vehicle=vehicle, departure=at(-20, 8))
        running = make_booking(status=BookingStatus.IN_PROGRESS, vehicle=vehicle, departure=at(0, 8))
        upcoming = make_booking(status=BookingStatus.APPROVED, vehicle=vehicle, departure=at(3, 8))
        june = make_booking(status=BookingStatus.CANCELLED, vehicle=vehicle, departure=at(-30, 8))
        june.created_at = datetime(2025, 6, 15, 10, 0)
        last_year = make_booking(status=BookingStatus.COMPLETED, vehicle=vehicle, departure=at(-300, 8))
        last_year.created_at = datetime(2024, 9, 2, 10, 0)
        db.commit()
        db.expire_all()

        usage = dashboard_service.resource_usage(vehicle, now=NOW)

        assert [b.id for b in usage["active_bookings"]] == [running.id, upcoming.id]
        assert usage["total_bookings"] == 6
        assert usage["bookings_this_year"] == 5
        assert usage["bookings_this_month"] == 4
        assert usage["last_used_at"] == done.arrival_at
        assert usage["next_available_at"] == at(0, 12)
        assert usage["can_remove"] is False

    def test_history_is_newest_first_and_capped(self, db, make_vehicle, make_booking):
        vehicle = make_vehicle()
        bookings = [make_booking(status=BookingStatus.COMPLETED, vehicle=vehicle, departure=at(-d, 8))
                    for d in (3, 2, 1)]
        db.expire_all()

        with patch.object(settings, "USAGE_HISTORY_LIMIT", 2):
            usage = dashboard_service.resource_usage(vehicle, now=NOW)

        # same created_at: newest id first
        assert [b.id for b in usage["history"]] == [bookings[2].id, bookings[1].id]
        assert usage["total_bookings"] == 3

    def test_unused_driver(self, db, make_driver):
        driver = make_driver(status=DriverStatus.AVAILABLE)

        usage = dashboard_service.resource_usage(driver, now=NOW)

        assert usage["active_bookings"] == [] and usage["history"] == []
        assert usage["total_bookings"] == 0
        assert usage["last_used_at"] is None
        assert usage["next_available_at"] is None
        assert usage["can_remove"] is True

    def test_driver_usage_follows_allocation(self, db, make_driver, make_vehicle, make_booking):
        driver = make_driver(status=DriverStatus.BUSY)
        make_booking(status=BookingStatus.APPROVED, vehicle=make_vehicle(), driver=driver,
                     needs_driver=True, departure=at(2, 8))
        make_booking(status=BookingStatus.APPROVED, vehicle=make_vehicle(), departure=at(2, 8))
        db.expire_all()

        usage = dashboard_service.resource_usage(driver, now=NOW)

        assert usage["total_bookings"] == 1
        assert usage["next_available_at"] == at(2, 12)


class TestPaginate:
    def test_slices_a_list(self):
        page = paginate(list(range(25)), page=3, page_size=10)

        assert page["items"] == [20, 21, 22, 23, 24]
        assert page["total"] == 25
        assert page["total_pages"] == 3
        assert page["has_previous"] and not page["has_next"]

    def test_empty_source(self):
        page = paginate([], page=1, page_size=10)
        assert page["total"] == 0 and page["total_pages"] == 0
        assert not page["has_previous"] and not page["has_next"]

    @pytest.mark.parametrize("page,page_size,field", [(0, 10, "page"), (1, 0, "page_size")])
    def test_invalid_bounds(self, page, page_size, field):
        with pytest.raises(ValidationError) as exc:
            paginate([1, 2, 3], page=page, page_size=page_size)
        assert exc.value.field == field
