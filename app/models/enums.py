# app/models/enums.py
"""Closed status/category sets shared by models, schemas and services."""

import enum

from sqlalchemy import Enum


class VehicleCategory(str, enum.Enum):
    HATCH = "hatch"
    SEDAN = "sedan"
    VAN = "van"          # light utility
    PICKUP = "pickup"
    TRUCK = "truck"


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class VehicleStatus(str, enum.Enum):
    AVAILABLE = "available"
    RESERVED = "reserved"
    IN_USE = "in_use"
    MAINTENANCE = "maintenance"


class DriverStatus(str, enum.Enum):
    AVAILABLE = "available"
    BUSY = "busy"
    OFF_DUTY = "off_duty"
    IRREGULAR = "irregular"


class DocumentStatus(str, enum.Enum):
    """Derived from license/exam dates, never persisted."""
    OK = "ok"
    EXPIRING = "expiring"
    EXPIRED = "expired"


LICENSE_CATEGORIES = ("A", "B", "C", "D", "E", "AB", "AC", "AD", "AE")

TERMINAL_BOOKING_STATUSES = frozenset({
    BookingStatus.REJECTED, BookingStatus.COMPLETED, BookingStatus.CANCELLED,
})

# Statuses in which a booking still holds (or may hold) its resources
ACTIVE_BOOKING_STATUSES = frozenset({
    BookingStatus.PENDING, BookingStatus.APPROVED, BookingStatus.IN_PROGRESS,
})


def enum_column_type(enum_cls):
    """SQLAlchemy type storing the enum's string value in a VARCHAR column."""
    return Enum(
        enum_cls,
        native_enum=False,
        length=20,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )
