# app/services/driver_service.py
"""
Driver registry + document rules.

Documents:
  - license valid iff license_expiry > now
  - toxicology exam valid for TOXICOLOGY_VALIDITY_YEARS (2) from the exam date
Status is partly derived (irregular when a document is expired) and partly
manual (busy / off_duty). Recomputation never touches busy or off_duty
drivers, and only runs on demand (refresh_driver_statuses), never on a timer.
"""

from datetime import date, datetime, time
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
from app.config import settings
from app.models.booking import Booking
from app.models.driver import Driver
from app.models.enums import (
    ACTIVE_BOOKING_STATUSES, LICENSE_CATEGORIES, DocumentStatus, DriverStatus,
)
from app.schemas.driver import DriverCreate, DriverUpdate
from app.utils.exceptions import ConflictViolationError, NotFoundError, ResourceInUseError, ValidationError
from app.utils.logger import get_logger
from app.utils.pagination import paginate
from app.utils.validators import (
    clean_text, is_valid_license, is_valid_phone, normalize_license, normalize_name, normalize_phone,
)

logger = get_logger(__name__)

MANUAL_STATUSES = {DriverStatus.BUSY, DriverStatus.OFF_DUTY}


# ── Document rules ───────────────────────────────────────────────────────────

def add_years(d: date, years: int) -> date:
    try:
        return d.replace(year=d.year + years)
    except ValueError:
        # 29 Feb on a non-leap target year
        return d.replace(year=d.year + years, day=28)


def _start_of(d: date) -> datetime:
    return datetime.combine(d, time.min)


def exam_expiry(driver: Driver) -> date:
    return add_years(driver.toxicology_exam_date, settings.TOXICOLOGY_VALIDITY_YEARS)


def license_valid(driver: Driver, now: datetime = None) -> bool:
    now = now or datetime.utcnow()
    return _start_of(driver.license_expiry) > now


def exam_valid(driver: Driver, now: datetime = None) -> bool:
    now = now or datetime.utcnow()
    return _start_of(exam_expiry(driver)) > now


def documents_valid(driver: Driver, now: datetime = None) -> bool:
    return license_valid(driver, now) and exam_valid(driver, now)


def days_to_license_expiry(driver: Driver, now: datetime = None) -> int:
    now = now or datetime.utcnow()
    return (_start_of(driver.license_expiry) - now).days


def days_to_exam_expiry(driver: Driver, now: datetime = None) -> int:
    now = now or datetime.utcnow()
    return (_start_of(exam_expiry(driver)) - now).days


def document_status(driver: Driver, now: datetime = None) -> DocumentStatus:
    now = now or datetime.utcnow()
    if not documents_valid(driver, now):
        return DocumentStatus.EXPIRED
    if (days_to_license_expiry(driver, now) <= settings.LICENSE_ALERT_DAYS
            or days_to_exam_expiry(driver, now) <= settings.EXAM_ALERT_DAYS):
        return DocumentStatus.EXPIRING
    return DocumentStatus.OK


def status_from_documents(driver: Driver, now: datetime = None) -> DriverStatus:
    return DriverStatus.AVAILABLE if documents_valid(driver, now) else DriverStatus.IRREGULAR


def is_eligible(driver: Driver, now: datetime = None) -> bool:
    """Static eligibility for allocation: not irregular and both documents valid."""
    return driver.status != DriverStatus.IRREGULAR and documents_valid(driver, now)


def describe_driver(driver: Driver, now: datetime = None) -> dict:
    """Driver columns plus the derived document fields, shaped for DriverOut."""
    now = now or datetime.utcnow()
    return {
        "id": driver.id,
        "full_name": driver.full_name,
        "license_number": driver.license_number,
        "license_expiry": driver.license_expiry,
        "license_category": driver.license_category,
        "phone": driver.phone,
        "toxicology_exam_date": driver.toxicology_exam_date,
        "status": driver.status,
        "notes": driver.notes,
        "license_valid": license_valid(driver, now),
        "exam_valid": exam_valid(driver, now),
        "exam_expiry": exam_expiry(driver),
        "document_status": document_status(driver, now),
        "days_to_license_expiry": days_to_license_expiry(driver, now),
        "days_to_exam_expiry": days_to_exam_expiry(driver, now),
    }


# ── Validation ───────────────────────────────────────────────────────────────

def license_exists(db: Session, license_number: str, exclude_id: Optional[int] = None) -> bool:
    q = db.query(Driver).filter(Driver.license_number == normalize_license(license_number))
    if exclude_id is not None:
        q = q.filter(Driver.id != exclude_id)
    return db.query(q.exists()).scalar()


def _validate(db: Session, data: DriverCreate, now: datetime, exclude_id: Optional[int] = None):
    if not (data.full_name or "").strip():
        raise ValidationError("Full name is required", field="full_name")
    if not is_valid_license(data.license_number):
        raise ValidationError("License number must contain 11 digits", field="license_number")
    if license_exists(db, data.license_number, exclude_id):
        raise ConflictViolationError("license_number", normalize_license(data.license_number),
                                     "A driver with this license number is already registered")
    if (data.license_category or "").upper() not in LICENSE_CATEGORIES:
        raise ValidationError(
            f"License category must be one of: {', '.join(LICENSE_CATEGORIES)}",
            field="license_category",
            details={"allowed": list(LICENSE_CATEGORIES), "provided": data.license_category},
        )
    if data.license_expiry < now.date():
        raise ValidationError("License cannot be expired", field="license_expiry")
    if data.toxicology_exam_date > now.date():
        raise ValidationError("Toxicology exam date cannot be in the future", field="toxicology_exam_date")
    if not is_valid_phone(data.phone):
        raise ValidationError("Phone must contain 10 or 11 digits", field="phone")


def _apply(driver: Driver, data: DriverCreate):
    driver.full_name = normalize_name(data.full_name)
    driver.license_number = normalize_license(data.license_number)
    driver.license_expiry = data.license_expiry
    driver.license_category = data.license_category.upper()
    driver.phone = normalize_phone(data.phone)
    driver.toxicology_exam_date = data.toxicology_exam_date
    driver.notes = clean_text(data.notes)


def _commit_unique(db: Session, driver: Driver):
    driver_id, license_number = driver.id, driver.license_number
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictViolationError("license_number", license_number,
                                     "A driver with this license number is already registered")
    except StaleDataError:
        db.rollback()
        raise ConflictViolationError("version", driver_id, "Driver was changed by another request; reload and try again")
    db.refresh(driver)


# ── CRUD ─────────────────────────────────────────────────────────────────────

def get_driver(db: Session, driver_id: int) -> Driver:
    driver = db.get(Driver, driver_id)
    if not driver:
        raise NotFoundError("Driver", driver_id)
    return driver


def get_by_license(db: Session, license_number: str) -> Optional[Driver]:
    return db.query(Driver).filter(Driver.license_number == normalize_license(license_number)).first()


def create_driver(db: Session, data: DriverCreate, now: datetime = None) -> Driver:
    now = now or datetime.utcnow()
    _validate(db, data, now)

    driver = Driver()
    _apply(driver, data)
    driver.status = status_from_documents(driver, now)
    db.add(driver)
    _commit_unique(db, driver)
    logger.info(f"[DRIVER] Registered {driver.full_name} (id={driver.id}, status={driver.status.value})")
    return driver


def update_driver(db: Session, driver_id: int, data: DriverUpdate, now: datetime = None) -> Driver:
    now = now or datetime.utcnow()
    driver = get_driver(db, driver_id)
    _validate(db, data, now, exclude_id=driver_id)

    requested = data.status or driver.status
    _apply(driver, data)
    if requested in MANUAL_STATUSES:
        driver.status = requested
    else:
        driver.status = status_from_documents(driver, now)
    _commit_unique(db, driver)
    logger.info(f"[DRIVER] Updated {driver.id} (status={driver.status.value})")
    return driver


def list_drivers(db: Session, search: str = None, license_category: str = None,
                 status: DriverStatus = None, expired_documents: bool = None,
                 now: datetime = None) -> List[Driver]:
    q = db.query(Driver)
    if search and search.strip():
        term = f"%{search.strip().upper()}%"
        q = q.filter(
            Driver.full_name.ilike(term)
            | Driver.license_number.ilike(term)
            | Driver.phone.like(f"%{search.strip()}%")
        )
    if license_category:
        q = q.filter(Driver.license_category == license_category.upper())
    if status is not None:
        q = q.filter(Driver.status == status)
    drivers = q.order_by(Driver.full_name, Driver.id).all()

    if expired_documents is not None:
        flagged = {DocumentStatus.EXPIRED, DocumentStatus.EXPIRING}
        drivers = [d for d in drivers if (document_status(d, now) in flagged) == expired_documents]
    return drivers


def page_drivers(db: Session, page: int = 1, page_size: int = None, search: str = None,
                 license_category: str = None, status: DriverStatus = None,
                 expired_documents: bool = None, now: datetime = None) -> dict:
    """Paged list_drivers. Sliced after the document filter, which runs in Python."""
    drivers = list_drivers(db, search, license_category, status, expired_documents, now)
    return paginate(drivers, page, page_size or settings.DEFAULT_PAGE_SIZE)


def active_bookings_for(db: Session, driver_id: int) -> List[Booking]:
    return db.query(Booking).filter(
        Booking.allocated_driver_id == driver_id,
        Booking.status.in_(ACTIVE_BOOKING_STATUSES),
    ).all()


def can_remove_driver(db: Session, driver_id: int) -> bool:
    return not active_bookings_for(db, driver_id)


def remove_driver(db: Session, driver_id: int, now: datetime = None) -> Driver:
    """Soft delete: flag irregular and stamp the notes."""
    now = now or datetime.utcnow()
    driver = get_driver(db, driver_id)
    active = active_bookings_for(db, driver_id)
    if active:
        raise ResourceInUseError("Driver", driver_id, [b.id for b in active])

    driver.status = DriverStatus.IRREGULAR
    driver.notes = f"[REMOVED ON {now:%d/%m/%Y}] " + (driver.notes or "")
    db.commit()
    logger.info(f"[DRIVER] Removed {driver.id} (soft delete)")
    return driver


# ── Status refresh & alerts ──────────────────────────────────────────────────

def refresh_driver_statuses(db: Session, now: datetime = None) -> int:
    """
    Recompute available/irregular from documents for every driver that is not
    manually busy or off duty. Returns the number of drivers whose status changed.
    """
    now = now or datetime.utcnow()
    drivers = db.query(Driver).filter(Driver.status.notin_(MANUAL_STATUSES)).all()
    changed = 0
    for driver in drivers:
        new_status = status_from_documents(driver, now)
        if driver.status != new_status:
            logger.info(f"[DRIVER] {driver.id} {driver.status.value} → {new_status.value}")
            driver.status = new_status
            changed += 1
    db.commit()
    logger.info(f"[DRIVER] Status refresh done: {changed}/{len(drivers)} updated")
    return changed


def expiry_alerts(db: Session, now: datetime = None) -> dict:
    """Counts of expired / soon-to-expire documents among non-irregular drivers."""
    now = now or datetime.utcnow()
    alerts = {"expired_documents": 0, "license_expiring": 0, "exam_expiring": 0, "drivers": []}
    drivers = db.query(Driver).filter(Driver.status != DriverStatus.IRREGULAR).order_by(Driver.full_name).all()
    for driver in drivers:
        if not documents_valid(driver, now):
            alerts["expired_documents"] += 1
        elif days_to_license_expiry(driver, now) <= settings.LICENSE_ALERT_DAYS:
            alerts["license_expiring"] += 1
        elif days_to_exam_expiry(driver, now) <= settings.EXAM_ALERT_DAYS:
            alerts["exam_expiring"] += 1
        else:
            continue
        alerts["drivers"].append(driver)
    return alerts


def drivers_expiring_within(db: Session, days: int, now: datetime = None) -> List[Driver]:
    now = now or datetime.utcnow()
    drivers = db.query(Driver).filter(Driver.status != DriverStatus.IRREGULAR).all()
    due = [
        d for d in drivers
        if days_to_license_expiry(d, now) <= days or days_to_exam_expiry(d, now) <= days
    ]
    return sorted(due, key=lambda d: (days_to_license_expiry(d, now), days_to_exam_expiry(d, now)))


def driver_stats(db: Session, now: datetime = None) -> dict:
    now = now or datetime.utcnow()
    drivers = db.query(Driver).all()
    by_status = {s.value: 0 for s in DriverStatus}
    by_document = {s.value: 0 for s in DocumentStatus}
    by_category = {c: 0 for c in LICENSE_CATEGORIES}
    for d in drivers:
        by_status[d.status.value] += 1
        by_document[document_status(d, now).value] += 1
        if d.license_category in by_category:
            by_category[d.license_category] += 1
    return {"total": len(drivers), "by_status": by_status,
            "by_document_status": by_document, "by_license_category": by_category}
