# app/schemas/vehicle.py
from pydantic import BaseModel
from typing import Dict, List, Optional
from app.models.enums import VehicleCategory, VehicleStatus
from app.schemas.common import PageMeta


class VehicleCreate(BaseModel):
    plate: str               # ABC-1234 or Mercosul ABC1D23, any case/dashes
    model: str
    category: VehicleCategory
    passenger_capacity: int
    notes: Optional[str] = None


class VehicleUpdate(VehicleCreate):
    status: Optional[VehicleStatus] = None    # omitted keeps the current status


class VehicleOut(BaseModel):
    id: int
    plate: str
    model: str
    category: VehicleCategory
    passenger_capacity: int
    status: VehicleStatus
    notes: Optional[str]
    display_text: str

    class Config:
        from_attributes = True


class VehicleSummary(BaseModel):
    id: int
    plate: str
    model: str

    class Config:
        from_attributes = True


class VehicleStats(BaseModel):
    total: int
    by_status: Dict[str, int]
    by_category: Dict[str, int]


class VehiclePage(PageMeta):
    items: List[VehicleOut]
