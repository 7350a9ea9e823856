# app/services/vehicle_service.py
"""
Vehicle registry: registration, edits, soft removal and fleet statistics.
Plates are stored normalised (ABC-1234 / ABC-1D23) and are unique.
"""

from datetime import datetime
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
from app.config import settings
from app.models.booking import Booking
from app.models.enums import ACTIVE_BOOKING_STATUSES, VehicleCategory, VehicleStatus
from app.models.vehicle import Vehicle
from app.schemas.vehicle import VehicleCreate, VehicleUpdate
from app.utils.exceptions import ConflictViolationError, NotFoundError, ResourceInUseError, ValidationError
from app.utils.logger import get_logger
from app.utils.pagination import paginate
from app.utils.validators import clean_text, is_valid_plate, normalize_plate

logger = get_logger(__name__)


def lookup_vehicle_by_plate(db: Session, plate: str) -> Optional[Vehicle]:
    """Find a vehicle by plate in any input format. Returns None if not found."""
    return db.query(Vehicle).filter(Vehicle.plate == normalize_plate(plate)).first()


def plate_exists(db: Session, plate: str, exclude_id: Optional[int] = None) -> bool:
    q = db.query(Vehicle).filter(Vehicle.plate == normalize_plate(plate))
    if exclude_id is not None:
        q = q.filter(Vehicle.id != exclude_id)
    return db.query(q.exists()).scalar()


def _validate(db: Session, data: VehicleCreate, exclude_id: Optional[int] = None):
    if not is_valid_plate(data.plate):
        raise ValidationError("Invalid plate format. Use ABC-1234 or ABC1D23", field="plate")
    if plate_exists(db, data.plate, exclude_id):
        raise ConflictViolationError("plate", normalize_plate(data.plate),
                                     "A vehicle with this plate is already registered")
    if not (data.model or "").strip():
        raise ValidationError("Model is required", field="model")
    if not settings.MIN_HEADCOUNT <= data.passenger_capacity <= settings.MAX_HEADCOUNT:
        raise ValidationError(
            f"Passenger capacity must be between {settings.MIN_HEADCOUNT} and {settings.MAX_HEADCOUNT}",
            field="passenger_capacity",
        )


def _commit_unique(db: Session, vehicle: Vehicle):
    vehicle_id, plate = vehicle.id, vehicle.plate
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictViolationError("plate", plate, "A vehicle with this plate is already registered")
    except StaleDataError:
        db.rollback()
        raise ConflictViolationError("version", vehicle_id, "Vehicle was changed by another request; reload and try again")
    db.refresh(vehicle)


def get_vehicle(db: Session, vehicle_id: int) -> Vehicle:
    vehicle = db.get(Vehicle, vehicle_id)
    if not vehicle:
        raise NotFoundError("Vehicle", vehicle_id)
    return vehicle


def create_vehicle(db: Session, data: VehicleCreate) -> Vehicle:
    _validate(db, data)
    vehicle = Vehicle(
        plate=normalize_plate(data.plate),
        model=data.model.strip(),
        category=data.category,
        passenger_capacity=data.passenger_capacity,
        status=VehicleStatus.AVAILABLE,
        notes=clean_text(data.notes),
    )
    db.add(vehicle)
    _commit_unique(db, vehicle)
    logger.info(f"[VEHICLE] Registered {vehicle.plate} ({vehicle.category.value})")
    return vehicle


def update_vehicle(db: Session, vehicle_id: int, data: VehicleUpdate) -> Vehicle:
    """Admin edit. A given status is applied as is (manual override); omitted keeps the current one."""
    vehicle = get_vehicle(db, vehicle_id)
    _validate(db, data, exclude_id=vehicle_id)

    vehicle.plate = normalize_plate(data.plate)
    vehicle.model = data.model.strip()
    vehicle.category = data.category
    vehicle.passenger_capacity = data.passenger_capacity
    if data.status is not None:
        vehicle.status = data.status
    vehicle.notes = clean_text(data.notes)
    _commit_unique(db, vehicle)
    logger.info(f"[VEHICLE] Updated {vehicle.plate} (status={vehicle.status.value})")
    return vehicle


def _vehicle_query(db: Session, search: str = None, category: VehicleCategory = None,
                   status: VehicleStatus = None):
    q = db.query(Vehicle)
    if search and search.strip():
        term = f"%{search.strip()}%"
        q = q.filter(Vehicle.plate.ilike(term) | Vehicle.model.ilike(term))
    if category is not None:
        q = q.filter(Vehicle.category == category)
    if status is not None:
        q = q.filter(Vehicle.status == status)
    return q.order_by(Vehicle.category, Vehicle.model, Vehicle.id)


def list_vehicles(db: Session, search: str = None, category: VehicleCategory = None,
                  status: VehicleStatus = None) -> List[Vehicle]:
    return _vehicle_query(db, search, category, status).all()


def page_vehicles(db: Session, page: int = 1, page_size: int = None, search: str = None,
                  category: VehicleCategory = None, status: VehicleStatus = None) -> dict:
    return paginate(_vehicle_query(db, search, category, status), page, page_size or settings.DEFAULT_PAGE_SIZE)


def active_bookings_for(db: Session, vehicle_id: int) -> List[Booking]:
    return db.query(Booking).filter(
        Booking.allocated_vehicle_id == vehicle_id,
        Booking.status.in_(ACTIVE_BOOKING_STATUSES),
    ).all()


def can_remove_vehicle(db: Session, vehicle_id: int) -> bool:
    return not active_bookings_for(db, vehicle_id)


def remove_vehicle(db: Session, vehicle_id: int, now: datetime = None) -> Vehicle:
    """Soft delete: move to maintenance and stamp the notes. Never deletes the row."""
    now = now or datetime.utcnow()
    vehicle = get_vehicle(db, vehicle_id)
    active = active_bookings_for(db, vehicle_id)
    if active:
        raise ResourceInUseError("Vehicle", vehicle_id, [b.id for b in active])

    vehicle.status = VehicleStatus.MAINTENANCE
    vehicle.notes = f"[REMOVED ON {now:%d/%m/%Y}] " + (vehicle.notes or "")
    db.commit()
    logger.info(f"[VEHICLE] Removed {vehicle.plate} (moved to maintenance)")
    return vehicle


def vehicle_stats(db: Session) -> dict:
    vehicles = db.query(Vehicle).all()
    by_status = {s.value: 0 for s in VehicleStatus}
    by_category = {c.value: 0 for c in VehicleCategory}
    for v in vehicles:
        by_status[v.status.value] += 1
        by_category[v.category.value] += 1
    return {"total": len(vehicles), "by_status": by_status, "by_category": by_category}
