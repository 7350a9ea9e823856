# app/routers/drivers.py
"""
Driver registry endpoints.
Document validity fields in every response are computed at request time.
POST /drivers/refresh-status is the on-demand bulk recompute (no scheduler).
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from app.config import settings
from app.database import get_db
from app.models.enums import DriverStatus
from app.schemas.booking import ResourceUsage
from app.schemas.driver import (
    DriverCreate, DriverExpiryAlerts, DriverOut, DriverPage, DriverStats, DriverUpdate, RefreshResult,
)
from app.services import dashboard_service, driver_service

router = APIRouter()


@router.get("/drivers", response_model=DriverPage, summary="List drivers, one page at a time")
def list_drivers(search: Optional[str] = None, license_category: Optional[str] = None,
                 status: Optional[DriverStatus] = None, expired_documents: Optional[bool] = None,
                 page: int = Query(1, ge=1),
                 page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
                 db: Session = Depends(get_db)):
    result = driver_service.page_drivers(db, page, page_size, search, license_category, status, expired_documents)
    result["items"] = [driver_service.describe_driver(d) for d in result["items"]]
    return result


@router.get("/drivers/stats", response_model=DriverStats)
def driver_stats(db: Session = Depends(get_db)):
    return driver_service.driver_stats(db)


@router.get("/drivers/alerts", response_model=DriverExpiryAlerts, summary="Expired and expiring documents")
def driver_alerts(db: Session = Depends(get_db)):
    alerts = driver_service.expiry_alerts(db)
    alerts["drivers"] = [driver_service.describe_driver(d) for d in alerts["drivers"]]
    return alerts


@router.get("/drivers/expiring", response_model=list[DriverOut])
def drivers_expiring(days: int = Query(default=settings.EXAM_ALERT_DAYS, ge=0),
                     db: Session = Depends(get_db)):
    return [driver_service.describe_driver(d) for d in driver_service.drivers_expiring_within(db, days)]


@router.post("/drivers/refresh-status", response_model=RefreshResult,
             summary="Recompute available/irregular from document dates")
def refresh_status(db: Session = Depends(get_db)):
    return {"updated": driver_service.refresh_driver_statuses(db)}


@router.post("/drivers", response_model=DriverOut, status_code=status.HTTP_201_CREATED)
def register_driver(body: DriverCreate, db: Session = Depends(get_db)):
    return driver_service.describe_driver(driver_service.create_driver(db, body))


@router.get("/drivers/{driver_id}", response_model=DriverOut)
def get_driver(driver_id: int, db: Session = Depends(get_db)):
    return driver_service.describe_driver(driver_service.get_driver(db, driver_id))


@router.get("/drivers/{driver_id}/usage", response_model=ResourceUsage,
            summary="Active bookings, recent history and usage counts")
def driver_usage(driver_id: int, db: Session = Depends(get_db)):
    return dashboard_service.resource_usage(driver_service.get_driver(db, driver_id))


@router.put("/drivers/{driver_id}", response_model=DriverOut)
def update_driver(driver_id: int, body: DriverUpdate, db: Session = Depends(get_db)):
    return driver_service.describe_driver(driver_service.update_driver(db, driver_id, body))


@router.delete("/drivers/{driver_id}", summary="Remove a driver (flagged irregular)")
def remove_driver(driver_id: int, db: Session = Depends(get_db)):
    driver = driver_service.remove_driver(db, driver_id)
    return {"status": "removed", "driver_id": driver.id, "driver_status": driver.status}
