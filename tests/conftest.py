# tests/conftest.py
"""Shared fixtures: in-memory SQLite database and small record factories."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Must be set before anything under app/ reads settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_TO_FILE"] = "false"
os.environ.pop("API_KEY", None)

import pytest
from datetime import datetime, timedelta
from app.database import Base, SessionLocal, engine
from app.models import Booking, Driver, Vehicle
from app.models.enums import BookingStatus, DriverStatus, VehicleCategory, VehicleStatus

# Fixed clock for every test that cares about "now"
NOW = datetime(2025, 7, 1, 9, 0, 0)


def at(day_offset=0, hour=8, minute=0):
    """Naive UTC datetime relative to NOW's date."""
    base = datetime.combine(NOW.date() + timedelta(days=day_offset), datetime.min.time())
    return base.replace(hour=hour, minute=minute)


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_vehicle(db):
    counter = {"n": 0}

    def _make(category=VehicleCategory.SEDAN, status=VehicleStatus.AVAILABLE, capacity=5, model=None):
        counter["n"] += 1
        vehicle = Vehicle(
            plate=f"TST-{1000 + counter['n']}",
            model=model or f"Model {counter['n']}",
            category=category,
            passenger_capacity=capacity,
            status=status,
        )
        db.add(vehicle)
        db.commit()
        db.refresh(vehicle)
        return vehicle

    return _make


@pytest.fixture
def make_driver(db):
    counter = {"n": 0}

    def _make(license_category="B", status=DriverStatus.AVAILABLE,
              license_expiry=None, exam_date=None, name=None):
        counter["n"] += 1
        driver = Driver(
            full_name=name or f"Driver {counter['n']}",
            license_number=f"{10000000000 + counter['n']}",
            license_expiry=license_expiry or NOW.date() + timedelta(days=365),
            license_category=license_category,
            phone="(11) 99999-0000",
            toxicology_exam_date=exam_date or NOW.date() - timedelta(days=100),
            status=status,
        )
        db.add(driver)
        db.commit()
        db.refresh(driver)
        return driver

    return _make


@pytest.fixture
def make_booking(db):
    """Insert a booking row directly, bypassing the lifecycle checks."""
    counter = {"n": 0}

    def _make(departure=None, arrival=None, status=BookingStatus.PENDING,
              category=VehicleCategory.SEDAN, vehicle=None, driver=None,
              needs_driver=False, notes=None):
        counter["n"] += 1
        departure = departure or at(1, 8)
        booking = Booking(
            protocol=f"2025070100000{counter['n']:04d}",
            departure_at=departure,
            arrival_at=arrival or departure + timedelta(hours=4),
            requester_name="Ana Souza",
            headcount=3,
            destination="Campinas",
            required_category=category,
            needs_driver=needs_driver,
            status=status,
            created_at=NOW,
            allocated_vehicle_id=vehicle.id if vehicle else None,
            allocated_driver_id=driver.id if driver else None,
            admin_notes=notes,
        )
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    return _make


@pytest.fixture
def booking_request():
    from app.schemas.booking import BookingCreate

    def _make(**overrides):
        data = {
            "departure_at": at(1, 8),
            "arrival_at": at(1, 12),
            "requester_name": "Ana Souza",
            "headcount": 3,
            "destination": "Campinas",
            "description": "Client visit",
            "required_category": VehicleCategory.SEDAN,
            "needs_driver": False,
        }
        data.update(overrides)
        return BookingCreate(**data)

    return _make


@pytest.fixture
def exam_date_for_days_left():
    """Exam date whose two-year validity ends `days` after NOW."""
    def _make(days):
        expiry = NOW.date() + timedelta(days=days)
        return expiry.replace(year=expiry.year - 2)
    return _make
