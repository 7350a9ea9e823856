# app/services/booking_service.py
"""
Booking lifecycle: creation, admin decisions and trip tracking.

    pending ──approve──▶ approved ──start──▶ in_progress ──complete──▶ completed
       │                    │                     │
       ├──reject──▶ rejected│                     │
       └──────cancel────────┴────────cancel───────┴──▶ cancelled

Side effects on resources:
  approve   vehicle → reserved,  driver → busy
  start     vehicle → in_use,    driver → busy
  complete  vehicle → available, driver → available (allocation kept on the booking)
  cancel    vehicle → available, driver → available, allocation cleared
  (release only undoes reserved/in_use and busy; maintenance or off_duty set
  during the booking is left as is)

Every transition checks the current status first, then moves the booking with
a conditional UPDATE (… WHERE status IN <expected>). If another request got
there first the row count is 0 and the call fails with InvalidStateError.
Booking and resource changes are committed together or rolled back together.
Approval reads the chosen vehicle and driver FOR UPDATE, and both rows carry
a version column that approval always rewrites. Two approvals racing for the
same resource cannot both commit; the loser gets NoAvailabilityError.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified
from sqlalchemy.orm.exc import StaleDataError
from app.config import settings
from app.models.booking import Booking
from app.models.driver import Driver
from app.models.enums import BookingStatus, DriverStatus, TERMINAL_BOOKING_STATUSES, VehicleStatus
from app.models.vehicle import Vehicle
from app.schemas.booking import BookingCreate
from app.services import conflict_checker
from app.services.availability_service import has_availability
from app.services.driver_service import is_eligible
from app.services.protocol import generate_protocol
from app.utils.exceptions import (
    ConflictViolationError, InvalidStateError, InvalidTransitionError,
    NoAvailabilityError, NotFoundError, ValidationError,
)
from app.utils.logger import get_logger
from app.utils.timezone import to_naive_utc
from app.utils.validators import clean_text

logger = get_logger(__name__)

ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.APPROVED, BookingStatus.REJECTED, BookingStatus.CANCELLED},
    BookingStatus.APPROVED: {BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED},
    BookingStatus.IN_PROGRESS: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.REJECTED: set(),
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
}

MAX_REQUESTER_LENGTH = 100
MAX_DESTINATION_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 500
MAX_ADMIN_NOTES_LENGTH = 1000

# Statuses the lifecycle itself puts a vehicle in
RELEASABLE_VEHICLE_STATUSES = {VehicleStatus.RESERVED, VehicleStatus.IN_USE}


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return BookingStatus(target) in ALLOWED_TRANSITIONS[BookingStatus(current)]


def sources_for(target: BookingStatus) -> set:
    """Statuses from which `target` can be reached."""
    return {src for src, targets in ALLOWED_TRANSITIONS.items() if target in targets}


def is_terminal(status: BookingStatus) -> bool:
    return BookingStatus(status) in TERMINAL_BOOKING_STATUSES


# ── Lookups ──────────────────────────────────────────────────────────────────

def get_booking(db: Session, booking_id: int) -> Booking:
    booking = db.get(Booking, booking_id)
    if not booking:
        raise NotFoundError("Booking", booking_id)
    return booking


def lookup_by_protocol(db: Session, protocol: str) -> Optional[Booking]:
    protocol = (protocol or "").strip()
    if not protocol:
        return None
    return db.query(Booking).filter(Booking.protocol == protocol).first()


# ── Creation ─────────────────────────────────────────────────────────────────

def validate_request(data: BookingCreate, now: datetime):
    departure, arrival = to_naive_utc(data.departure_at), to_naive_utc(data.arrival_at)

    if not (data.requester_name or "").strip():
        raise ValidationError("Requester name is required", field="requester_name")
    if len(data.requester_name.strip()) > MAX_REQUESTER_LENGTH:
        raise ValidationError(f"Requester name must be at most {MAX_REQUESTER_LENGTH} characters",
                              field="requester_name")
    if not (data.destination or "").strip():
        raise ValidationError("Destination is required", field="destination")
    if len(data.destination.strip()) > MAX_DESTINATION_LENGTH:
        raise ValidationError(f"Destination must be at most {MAX_DESTINATION_LENGTH} characters",
                              field="destination")
    if data.description and len(data.description.strip()) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters",
                              field="description")
    if not settings.MIN_HEADCOUNT <= data.headcount <= settings.MAX_HEADCOUNT:
        raise ValidationError(
            f"Headcount must be between {settings.MIN_HEADCOUNT} and {settings.MAX_HEADCOUNT}",
            field="headcount",
            details={"provided": data.headcount},
        )
    if departure < now:
        raise ValidationError("Departure cannot be earlier than the current time", field="departure_at",
                              details={"departure_at": departure.isoformat(), "now": now.isoformat()})
    if arrival <= departure:
        raise ValidationError("Arrival must be after departure", field="arrival_at",
                              details={"departure_at": departure.isoformat(), "arrival_at": arrival.isoformat()})


def create_booking(db: Session, data: BookingCreate, now: datetime = None) -> Booking:
    """
    Validate the request, confirm at least one vehicle of the category is free
    for the window and store it as pending under a fresh protocol.
    No vehicle is picked here; allocation happens at approval.
    """
    now = now or datetime.utcnow()
    validate_request(data, now)
    departure, arrival = to_naive_utc(data.departure_at), to_naive_utc(data.arrival_at)

    if not has_availability(db, data.required_category, departure, arrival):
        logger.warning(f"[BOOKING] No {data.required_category.value} available for "
                       f"[{departure}, {arrival}), request from {data.requester_name} refused")
        raise NoAvailabilityError(
            "No vehicles available for the requested category and period",
            field="required_category",
            details={"category": data.required_category.value,
                     "departure_at": departure.isoformat(), "arrival_at": arrival.isoformat()},
        )

    protocol = None
    for attempt in range(1, settings.PROTOCOL_MAX_RETRIES + 1):
        protocol = generate_protocol(now)
        booking = Booking(
            protocol=protocol,
            departure_at=departure,
            arrival_at=arrival,
            requester_name=data.requester_name.strip(),
            headcount=data.headcount,
            destination=data.destination.strip(),
            description=clean_text(data.description),
            required_category=data.required_category,
            needs_driver=data.needs_driver,
            status=BookingStatus.PENDING,
            created_at=now,
        )
        db.add(booking)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(f"[BOOKING] Protocol {protocol} already taken (attempt {attempt})")
            continue
        db.refresh(booking)
        logger.info(f"[BOOKING] Created {booking.protocol} | {booking.required_category.value} | "
                    f"{booking.departure_at} → {booking.arrival_at} | driver={booking.needs_driver}")
        return booking

    raise ConflictViolationError("protocol", protocol,
                                 f"Could not allocate a unique protocol after {settings.PROTOCOL_MAX_RETRIES} attempts")


# ── Transitions ──────────────────────────────────────────────────────────────

def _require_status(booking: Booking, action: str, target: BookingStatus):
    expected = sources_for(target)
    if booking.status not in expected:
        logger.warning(f"[BOOKING] Refused {action} on {booking.protocol}: status is {booking.status.value}")
        raise InvalidStateError(action, expected, booking.status)


def _require_notes(notes: Optional[str], reason: str) -> str:
    notes = clean_text(notes)
    if not notes:
        raise ValidationError(f"A {reason} is required", field="notes")
    if len(notes) > MAX_ADMIN_NOTES_LENGTH:
        raise ValidationError(f"Notes must be at most {MAX_ADMIN_NOTES_LENGTH} characters", field="notes")
    return notes


def _claim(db: Session, booking: Booking, action: str, target: BookingStatus, values: dict = None):
    """Compare-and-swap the booking status; the row only moves if it is still in an expected status."""
    expected = sources_for(target)
    changes = {Booking.status: target}
    for key, value in (values or {}).items():
        changes[getattr(Booking, key)] = value

    rows = (
        db.query(Booking)
        .filter(Booking.id == booking.id, Booking.status.in_(expected))
        .update(changes, synchronize_session=False)
    )
    if rows != 1:
        db.rollback()
        db.refresh(booking)
        logger.warning(f"[BOOKING] Lost race on {action} for {booking.protocol}: now {booking.status.value}")
        raise InvalidStateError(action, expected, booking.status)


def _commit(db: Session, booking: Booking):
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        db.refresh(booking)
        logger.warning(f"[BOOKING] Resource of {booking.protocol} changed by another request")
        raise NoAvailabilityError("The allocated vehicle or driver was changed by another request; try again",
                                  details={"booking_id": booking.id})
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(booking)


def _hold(db: Session, booking: Booking, resource, status, field: str):
    """
    Write the resource's new status under its version check. The UPDATE is
    forced even when the status is unchanged, so a concurrent approval that
    committed first on the same row makes this one match nothing.
    """
    resource_id = resource.id
    resource.status = status
    flag_modified(resource, "status")
    try:
        db.flush()
    except StaleDataError:
        db.rollback()
        db.refresh(booking)
        logger.warning(f"[BOOKING] Lost allocation race on {field}={resource_id} for {booking.protocol}")
        raise NoAvailabilityError("The selected resource was allocated by another request in the meantime",
                                  field=field, details={field: resource_id})


def _release_resources(db: Session, booking: Booking):
    """Hand vehicle and driver back, leaving alone any status an admin set meanwhile (maintenance, off duty...)."""
    if booking.allocated_vehicle_id is not None:
        vehicle = db.get(Vehicle, booking.allocated_vehicle_id)
        if vehicle and vehicle.status in RELEASABLE_VEHICLE_STATUSES:
            vehicle.status = VehicleStatus.AVAILABLE
    if booking.allocated_driver_id is not None:
        driver = db.get(Driver, booking.allocated_driver_id)
        if driver and driver.status == DriverStatus.BUSY:
            driver.status = DriverStatus.AVAILABLE


def _check_vehicle(db: Session, booking: Booking, vehicle_id: int) -> Vehicle:
    # FOR UPDATE serialises approvals on PostgreSQL; SQLite drops it and relies on the version check
    vehicle = db.query(Vehicle).filter(Vehicle.id == vehicle_id).with_for_update().first()
    if not vehicle:
        raise NotFoundError("Vehicle", vehicle_id)
    if vehicle.category != booking.required_category:
        raise ValidationError(
            f"Vehicle {vehicle.plate} is a {vehicle.category.value}, "
            f"booking requires {booking.required_category.value}",
            field="vehicle_id",
        )
    if vehicle.status == VehicleStatus.MAINTENANCE:
        raise NoAvailabilityError(f"Vehicle {vehicle.plate} is under maintenance", field="vehicle_id",
                                  details={"vehicle_id": vehicle.id})
    clashes = conflict_checker.conflicting_bookings(
        db, "vehicle", vehicle.id, booking.departure_at, booking.arrival_at,
        exclude_booking_id=booking.id,
    )
    if clashes:
        raise NoAvailabilityError(f"Vehicle {vehicle.plate} is already booked in this period",
                                  field="vehicle_id",
                                  details={"vehicle_id": vehicle.id, "conflicts": [b.protocol for b in clashes]})
    return vehicle


def _check_driver(db: Session, booking: Booking, driver_id: int, now: datetime) -> Driver:
    driver = db.query(Driver).filter(Driver.id == driver_id).with_for_update().first()
    if not driver:
        raise NotFoundError("Driver", driver_id)
    if not is_eligible(driver, now):
        raise NoAvailabilityError(f"Driver {driver.full_name} is irregular or has expired documents",
                                  field="driver_id", details={"driver_id": driver.id})
    clashes = conflict_checker.conflicting_bookings(
        db, "driver", driver.id, booking.departure_at, booking.arrival_at,
        exclude_booking_id=booking.id,
    )
    if clashes:
        raise NoAvailabilityError(f"Driver {driver.full_name} is already allocated in this period",
                                  field="driver_id",
                                  details={"driver_id": driver.id, "conflicts": [b.protocol for b in clashes]})
    return driver


def approve_booking(db: Session, booking_id: int, vehicle_id: Optional[int],
                    driver_id: Optional[int] = None, notes: Optional[str] = None,
                    now: datetime = None) -> Booking:
    now = now or datetime.utcnow()
    booking = get_booking(db, booking_id)
    _require_status(booking, "approve", BookingStatus.APPROVED)

    if vehicle_id is None:
        raise ValidationError("A vehicle must be selected", field="vehicle_id")
    if booking.needs_driver and driver_id is None:
        raise ValidationError("This booking needs a driver; select one", field="driver_id")

    vehicle = _check_vehicle(db, booking, vehicle_id)
    driver = _check_driver(db, booking, driver_id, now) if driver_id is not None else None

    values = {"allocated_vehicle_id": vehicle.id, "allocated_driver_id": driver.id if driver else None}
    notes = clean_text(notes)
    if notes:
        values["admin_notes"] = notes

    _claim(db, booking, "approve", BookingStatus.APPROVED, values)
    _hold(db, booking, vehicle, VehicleStatus.RESERVED, "vehicle_id")
    if driver:
        _hold(db, booking, driver, DriverStatus.BUSY, "driver_id")
    _commit(db, booking)

    logger.info(f"[BOOKING] Approved {booking.protocol} → vehicle {vehicle.plate}"
                + (f", driver {driver.full_name}" if driver else ""))
    return booking


def reject_booking(db: Session, booking_id: int, notes: Optional[str]) -> Booking:
    booking = get_booking(db, booking_id)
    _require_status(booking, "reject", BookingStatus.REJECTED)
    notes = _require_notes(notes, "rejection reason")

    _claim(db, booking, "reject", BookingStatus.REJECTED,
           {"admin_notes": notes, "allocated_vehicle_id": None, "allocated_driver_id": None})
    _commit(db, booking)
    logger.info(f"[BOOKING] Rejected {booking.protocol}: {notes}")
    return booking


def cancel_booking(db: Session, booking_id: int, notes: Optional[str]) -> Booking:
    booking = get_booking(db, booking_id)
    _require_status(booking, "cancel", BookingStatus.CANCELLED)
    notes = _require_notes(notes, "cancellation reason")

    _claim(db, booking, "cancel", BookingStatus.CANCELLED,
           {"admin_notes": notes, "allocated_vehicle_id": None, "allocated_driver_id": None})
    # booking still holds the pre-update allocation in memory
    _release_resources(db, booking)
    _commit(db, booking)
    logger.info(f"[BOOKING] Cancelled {booking.protocol}: resources released")
    return booking


def start_trip(db: Session, booking_id: int) -> Booking:
    booking = get_booking(db, booking_id)
    _require_status(booking, "start", BookingStatus.IN_PROGRESS)

    _claim(db, booking, "start", BookingStatus.IN_PROGRESS)
    if booking.allocated_vehicle_id is not None:
        vehicle = db.get(Vehicle, booking.allocated_vehicle_id)
        if vehicle:
            vehicle.status = VehicleStatus.IN_USE
    if booking.allocated_driver_id is not None:
        driver = db.get(Driver, booking.allocated_driver_id)
        if driver:
            driver.status = DriverStatus.BUSY
    _commit(db, booking)
    logger.info(f"[BOOKING] Trip started {booking.protocol}")
    return booking


def append_note(existing: Optional[str], label: str, note: Optional[str]) -> Optional[str]:
    note = clean_text(note)
    if not note:
        return existing
    entry = f"{label}: {note}"
    return f"{existing}\n\n{entry}" if existing else entry


def complete_trip(db: Session, booking_id: int, notes: Optional[str] = None) -> Booking:
    booking = get_booking(db, booking_id)
    _require_status(booking, "complete", BookingStatus.COMPLETED)

    admin_notes = append_note(booking.admin_notes, "Completion", notes)
    if admin_notes and len(admin_notes) > MAX_ADMIN_NOTES_LENGTH:
        raise ValidationError(f"Notes must be at most {MAX_ADMIN_NOTES_LENGTH} characters in total",
                              field="notes")

    _claim(db, booking, "complete", BookingStatus.COMPLETED, {"admin_notes": admin_notes})
    _release_resources(db, booking)
    _commit(db, booking)
    logger.info(f"[BOOKING] Trip completed {booking.protocol}")
    return booking


def transition_booking(db: Session, booking_id: int, target: BookingStatus, **kwargs) -> Booking:
    """
    Generic entry point: move a booking to `target`, dispatching to the
    matching operation. Unreachable targets raise InvalidTransitionError.
    """
    target = BookingStatus(target)
    booking = get_booking(db, booking_id)
    if not can_transition(booking.status, target):
        raise InvalidTransitionError(booking.status, target, sources_for(target))

    handlers = {
        BookingStatus.APPROVED: lambda: approve_booking(
            db, booking_id, kwargs.get("vehicle_id"), kwargs.get("driver_id"), kwargs.get("notes"), kwargs.get("now")),
        BookingStatus.REJECTED: lambda: reject_booking(db, booking_id, kwargs.get("notes")),
        BookingStatus.CANCELLED: lambda: cancel_booking(db, booking_id, kwargs.get("notes")),
        BookingStatus.IN_PROGRESS: lambda: start_trip(db, booking_id),
        BookingStatus.COMPLETED: lambda: complete_trip(db, booking_id, kwargs.get("notes")),
    }
    return handlers[target]()

