# app/routers/health.py
"""
System health check endpoint.
Returns status of backend + DB, plus fleet counts so a dashboard can tell
at a glance whether anything is bookable.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from app.database import get_db
from app.models.driver import Driver
from app.models.enums import VehicleStatus
from app.models.vehicle import Vehicle
from datetime import datetime

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db)):
    result = {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "backend": "ok",
        "database": "unknown",
        "fleet": {},
    }

    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
        result["fleet"] = {
            "vehicles": db.query(func.count(Vehicle.id)).scalar(),
            "vehicles_in_service": db.query(func.count(Vehicle.id))
            .filter(Vehicle.status != VehicleStatus.MAINTENANCE).scalar(),
            "drivers": db.query(func.count(Driver.id)).scalar(),
        }
    except SQLAlchemyError as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    return result
