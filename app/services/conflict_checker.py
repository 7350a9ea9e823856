# app/services/conflict_checker.py
"""
Scheduling conflict checks for vehicles and drivers.

Windows are half-open: [start, end). A candidate window overlaps an existing
booking iff  candidate.start < booking.arrival_at  AND  candidate.end > booking.departure_at,
so a trip ending at 10:00 never blocks one starting at 10:00.

Which bookings count as occupying a resource depends on the caller:
  - creation_blocking_statuses(): approved | in_progress
  - review_blocking_statuses():   pending | approved | in_progress
Both come from settings.
"""

from datetime import datetime
from typing import Iterable, Optional, Set
from sqlalchemy.orm import Session
from app.config import settings
from app.models.booking import Booking
from app.models.enums import BookingStatus
from app.utils.logger import get_logger

logger = get_logger(__name__)

_RESOURCE_COLUMNS = {
    "vehicle": Booking.allocated_vehicle_id,
    "driver": Booking.allocated_driver_id,
}


def _as_statuses(values: Iterable) -> Set[BookingStatus]:
    return {BookingStatus(v) for v in values}


def creation_blocking_statuses() -> Set[BookingStatus]:
    return _as_statuses(settings.CREATION_BLOCKING_STATUSES)


def review_blocking_statuses() -> Set[BookingStatus]:
    return _as_statuses(settings.REVIEW_BLOCKING_STATUSES)


def windows_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Strict half-open overlap; touching endpoints do not overlap."""
    return a_start < b_end and a_end > b_start


def conflicting_bookings(db: Session, resource: str, resource_id: int,
                         start: datetime, end: datetime,
                         blocking_statuses: Iterable = None,
                         exclude_booking_id: Optional[int] = None) -> list:
    """Bookings holding `resource_id` during [start, end) under the given blocking set."""
    column = _RESOURCE_COLUMNS.get(resource)
    if column is None:
        raise ValueError(f"Unknown resource kind: {resource!r}")

    statuses = _as_statuses(blocking_statuses) if blocking_statuses is not None else creation_blocking_statuses()
    if not statuses:
        return []

    q = db.query(Booking).filter(
        column == resource_id,
        Booking.status.in_(statuses),
        Booking.departure_at < end,
        Booking.arrival_at > start,
    )
    if exclude_booking_id is not None:
        q = q.filter(Booking.id != exclude_booking_id)
    return q.order_by(Booking.departure_at).all()


def has_conflict(db: Session, resource: str, resource_id: int,
                 start: datetime, end: datetime,
                 blocking_statuses: Iterable = None,
                 exclude_booking_id: Optional[int] = None) -> bool:
    """True if any blocking booking overlaps [start, end) for this vehicle/driver."""
    conflicts = conflicting_bookings(db, resource, resource_id, start, end,
                                     blocking_statuses, exclude_booking_id)
    if conflicts:
        logger.debug(f"{resource} {resource_id} busy in [{start}, {end}): "
                     f"{[b.protocol for b in conflicts]}")
    return bool(conflicts)
