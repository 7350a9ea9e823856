# scripts/setup/seed_db.py
"""
Seed a few vehicles and drivers for development.
Goes through the registry services, so plates/licenses are validated and
driver status is derived from the document dates. Existing records are skipped.
Usage: python scripts/setup/seed_db.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from datetime import date, timedelta

from app.database import SessionLocal, create_tables
from app.models.enums import VehicleCategory
from app.schemas.driver import DriverCreate
from app.schemas.vehicle import VehicleCreate
from app.services import driver_service, vehicle_service

TODAY = date.today()

VEHICLES = [
    VehicleCreate(plate="ABC-1234", model="Gol 1.0", category=VehicleCategory.HATCH, passenger_capacity=5),
    VehicleCreate(plate="DEF-5678", model="Corolla XEI", category=VehicleCategory.SEDAN, passenger_capacity=5),
    VehicleCreate(plate="GHI-9012", model="Hilux SR", category=VehicleCategory.PICKUP, passenger_capacity=5),
    VehicleCreate(plate="JKL1M23", model="Master Minibus", category=VehicleCategory.VAN, passenger_capacity=16),
]

DRIVERS = [
    DriverCreate(full_name="joão silva santos", license_number="12345678901",
                 license_expiry=TODAY + timedelta(days=500), license_category="B",
                 phone="11999999999", toxicology_exam_date=TODAY - timedelta(days=200)),
    DriverCreate(full_name="maria oliveira costa", license_number="98765432109",
                 license_expiry=TODAY + timedelta(days=20), license_category="C",
                 phone="1188888888", toxicology_exam_date=TODAY - timedelta(days=400)),
]


def main():
    create_tables()
    db = SessionLocal()
    try:
        for v in VEHICLES:
            if vehicle_service.lookup_vehicle_by_plate(db, v.plate):
                print(f"   = vehicle {v.plate} already present")
                continue
            vehicle = vehicle_service.create_vehicle(db, v)
            print(f"   + vehicle {vehicle.plate} ({vehicle.category.value})")

        for d in DRIVERS:
            if driver_service.get_by_license(db, d.license_number):
                print(f"   = driver {d.license_number} already present")
                continue
            driver = driver_service.create_driver(db, d)
            print(f"   + driver {driver.full_name} ({driver.status.value})")
    finally:
        db.close()
    print("Seed complete")


if __name__ == "__main__":
    main()
