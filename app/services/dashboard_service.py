# app/services/dashboard_service.py
"""Admin dashboard queries: filtered booking list, per-status counts and per-resource usage."""

from datetime import date, datetime, time, timedelta
from typing import List
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload
from app.config import settings
from app.models.booking import Booking
from app.models.enums import ACTIVE_BOOKING_STATUSES, BookingStatus, VehicleCategory


def list_bookings(db: Session, status: BookingStatus = None, date_from: date = None,
                  date_to: date = None, category: VehicleCategory = None) -> List[Booking]:
    """Newest first. Date filters compare the departure date, both ends inclusive."""
    q = db.query(Booking).options(
        joinedload(Booking.allocated_vehicle), joinedload(Booking.allocated_driver)
    )
    if status is not None:
        q = q.filter(Booking.status == status)
    if date_from is not None:
        q = q.filter(Booking.departure_at >= datetime.combine(date_from, time.min))
    if date_to is not None:
        q = q.filter(Booking.departure_at < datetime.combine(date_to + timedelta(days=1), time.min))
    if category is not None:
        q = q.filter(Booking.required_category == category)
    return q.order_by(Booking.created_at.desc(), Booking.id.desc()).all()


def booking_counts(db: Session) -> dict:
    rows = db.query(Booking.status, func.count(Booking.id)).group_by(Booking.status).all()
    by_status = {s.value: 0 for s in BookingStatus}
    for status, count in rows:
        by_status[BookingStatus(status).value] = count
    return {"total": sum(by_status.values()), "by_status": by_status}


def resource_usage(resource, now: datetime = None) -> dict:
    """
    Usage summary of a Vehicle or Driver, read from its bookings relationship.

    Year/month counts go by booking creation date. next_available_at is the
    earliest arrival among the approved/in-progress bookings holding the
    resource; None when nothing holds it.
    """
    now = now or datetime.utcnow()
    bookings = sorted(resource.bookings, key=lambda b: (b.created_at, b.id), reverse=True)

    active = sorted((b for b in bookings if b.status in ACTIVE_BOOKING_STATUSES),
                    key=lambda b: (b.departure_at, b.id))
    holding = [b for b in active if b.status in (BookingStatus.APPROVED, BookingStatus.IN_PROGRESS)]
    completed = [b for b in bookings if b.status == BookingStatus.COMPLETED]

    return {
        "active_bookings": active,
        "history": bookings[:settings.USAGE_HISTORY_LIMIT],
        "total_bookings": len(bookings),
        "bookings_this_year": sum(1 for b in bookings if b.created_at.year == now.year),
        "bookings_this_month": sum(
            1 for b in bookings if (b.created_at.year, b.created_at.month) == (now.year, now.month)
        ),
        "last_used_at": max((b.arrival_at for b in completed), default=None),
        "next_available_at": min((b.arrival_at for b in holding), default=None),
        "can_remove": not active,
    }
