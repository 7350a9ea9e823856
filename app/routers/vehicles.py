# app/routers/vehicles.py
"""Fleet registry: paged listing, CRUD and usage view. DELETE is a soft removal (maintenance + note)."""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from app.config import settings
from app.database import get_db
from app.models.enums import VehicleCategory, VehicleStatus
from app.schemas.booking import ResourceUsage
from app.schemas.vehicle import VehicleCreate, VehicleOut, VehiclePage, VehicleStats, VehicleUpdate
from app.services import dashboard_service, vehicle_service

router = APIRouter()


@router.get("/vehicles", response_model=VehiclePage, summary="List vehicles, one page at a time")
def list_vehicles(search: Optional[str] = None, category: Optional[VehicleCategory] = None,
                  status: Optional[VehicleStatus] = None,
                  page: int = Query(1, ge=1),
                  page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
                  db: Session = Depends(get_db)):
    return vehicle_service.page_vehicles(db, page, page_size, search, category, status)


@router.get("/vehicles/stats", response_model=VehicleStats, summary="Fleet totals per status and category")
def vehicle_stats(db: Session = Depends(get_db)):
    return vehicle_service.vehicle_stats(db)


@router.post("/vehicles", response_model=VehicleOut, status_code=status.HTTP_201_CREATED,
             summary="Register a vehicle")
def register_vehicle(body: VehicleCreate, db: Session = Depends(get_db)):
    return vehicle_service.create_vehicle(db, body)


@router.get("/vehicles/{vehicle_id}", response_model=VehicleOut)
def get_vehicle(vehicle_id: int, db: Session = Depends(get_db)):
    return vehicle_service.get_vehicle(db, vehicle_id)


@router.get("/vehicles/{vehicle_id}/usage", response_model=ResourceUsage,
            summary="Active bookings, recent history and usage counts")
def vehicle_usage(vehicle_id: int, db: Session = Depends(get_db)):
    return dashboard_service.resource_usage(vehicle_service.get_vehicle(db, vehicle_id))


@router.put("/vehicles/{vehicle_id}", response_model=VehicleOut, summary="Edit a vehicle (status included)")
def update_vehicle(vehicle_id: int, body: VehicleUpdate, db: Session = Depends(get_db)):
    return vehicle_service.update_vehicle(db, vehicle_id, body)


@router.delete("/vehicles/{vehicle_id}", summary="Remove a vehicle from service")
def remove_vehicle(vehicle_id: int, db: Session = Depends(get_db)):
    vehicle = vehicle_service.remove_vehicle(db, vehicle_id)
    return {"status": "removed", "plate": vehicle.plate, "vehicle_status": vehicle.status}
