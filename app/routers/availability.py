# app/routers/availability.py
"""Free vehicles/drivers for a window (creation-time blocking rules)."""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.enums import VehicleCategory
from app.schemas.driver import DriverSummary
from app.schemas.vehicle import VehicleOut
from app.services import availability_service
from app.utils.timezone import to_naive_utc

router = APIRouter()


@router.get("/availability/vehicles", response_model=list[VehicleOut], summary="Vehicles free in a window")
def available_vehicles(category: VehicleCategory, start: datetime, end: datetime,
                       db: Session = Depends(get_db)):
    return availability_service.find_available_vehicles(db, category, to_naive_utc(start), to_naive_utc(end))


@router.get("/availability/drivers", response_model=list[DriverSummary], summary="Drivers free in a window")
def available_drivers(start: datetime, end: datetime, license_category: Optional[str] = None,
                      db: Session = Depends(get_db)):
    return availability_service.find_available_drivers(db, license_category,
                                                       to_naive_utc(start), to_naive_utc(end))
