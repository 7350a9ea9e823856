# app/services/availability_service.py
"""
Availability resolver: which vehicles/drivers are free for a window.

Two passes over the resource pool:
  1. static eligibility
       vehicles: category matches and status != maintenance
       drivers:  license category matches, status != irregular, license and exam valid
  2. no conflicting booking under the given blocking set (creation set by default)

Survivors keep the pool's natural order (primary key). Nothing available is an
empty list, never an error; callers decide whether that means NoAvailability.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional
from sqlalchemy.orm import Session
from app.models.booking import Booking
from app.models.driver import Driver
from app.models.enums import DriverStatus, VehicleCategory, VehicleStatus
from app.models.vehicle import Vehicle
from app.services import conflict_checker
from app.services.driver_service import documents_valid
from app.utils.exceptions import NotFoundError, ValidationError
from app.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class AllocationCandidates:
    booking_id: int
    vehicles: List[Vehicle] = field(default_factory=list)
    drivers: List[Driver] = field(default_factory=list)


def _check_window(start: datetime, end: datetime):
    if end <= start:
        raise ValidationError("End of the window must be after its start", field="end",
                              details={"start": start.isoformat(), "end": end.isoformat()})


def eligible_vehicles(db: Session, category: VehicleCategory) -> List[Vehicle]:
    return (
        db.query(Vehicle)
        .filter(Vehicle.category == category, Vehicle.status != VehicleStatus.MAINTENANCE)
        .order_by(Vehicle.id)
        .all()
    )


def eligible_drivers(db: Session, license_category: Optional[str] = None,
                     now: datetime = None) -> List[Driver]:
    """Non-irregular drivers with valid documents; any license category when None."""
    q = db.query(Driver).filter(Driver.status != DriverStatus.IRREGULAR)
    if license_category:
        q = q.filter(Driver.license_category == license_category.upper())
    return [d for d in q.order_by(Driver.id).all() if documents_valid(d, now)]


def find_available_vehicles(db: Session, category: VehicleCategory,
                            start: datetime, end: datetime,
                            blocking_statuses: Iterable = None,
                            exclude_booking_id: Optional[int] = None) -> List[Vehicle]:
    _check_window(start, end)
    pool = eligible_vehicles(db, category)
    available = [
        v for v in pool
        if not conflict_checker.has_conflict(db, "vehicle", v.id, start, end,
                                             blocking_statuses, exclude_booking_id)
    ]
    logger.debug(f"[AVAILABILITY] {category.value} [{start}, {end}): {len(available)}/{len(pool)} free")
    return available


def find_available_drivers(db: Session, license_category: Optional[str],
                           start: datetime, end: datetime,
                           blocking_statuses: Iterable = None,
                           exclude_booking_id: Optional[int] = None,
                           now: datetime = None) -> List[Driver]:
    _check_window(start, end)
    pool = eligible_drivers(db, license_category, now)
    available = [
        d for d in pool
        if not conflict_checker.has_conflict(db, "driver", d.id, start, end,
                                             blocking_statuses, exclude_booking_id)
    ]
    logger.debug(f"[AVAILABILITY] drivers cat={license_category} [{start}, {end}): "
                 f"{len(available)}/{len(pool)} free")
    return available


def has_availability(db: Session, category: VehicleCategory, start: datetime, end: datetime) -> bool:
    """Can a request for this category/window be accepted at all?"""
    return bool(find_available_vehicles(db, category, start, end))


def list_allocation_candidates(db: Session, booking_id: int, now: datetime = None) -> AllocationCandidates:
    """
    Options shown to the admin when reviewing a booking: vehicles of the
    requested category and eligible drivers of any license category, free
    under the broader review blocking set, ignoring the booking itself.
    """
    booking = db.get(Booking, booking_id)
    if not booking:
        raise NotFoundError("Booking", booking_id)

    review = conflict_checker.review_blocking_statuses()
    vehicles = find_available_vehicles(db, booking.required_category,
                                       booking.departure_at, booking.arrival_at,
                                       blocking_statuses=review, exclude_booking_id=booking.id)
    drivers = find_available_drivers(db, None, booking.departure_at, booking.arrival_at,
                                     blocking_statuses=review, exclude_booking_id=booking.id, now=now)
    return AllocationCandidates(booking_id=booking.id, vehicles=vehicles, drivers=drivers)
