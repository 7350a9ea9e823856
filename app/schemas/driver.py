# app/schemas/driver.py
from pydantic import BaseModel
from datetime import date
from typing import Dict, List, Optional
from app.models.enums import DocumentStatus, DriverStatus
from app.schemas.common import PageMeta


class DriverCreate(BaseModel):
    full_name: str
    license_number: str          # 11 digits, punctuation ignored
    license_expiry: date
    license_category: str        # A | B | C | D | E | AB | AC | AD | AE
    phone: str                   # 10 or 11 digits
    toxicology_exam_date: date
    notes: Optional[str] = None


class DriverUpdate(DriverCreate):
    # Omitted: keep the current status. available/irregular are recomputed from
    # documents; busy/off_duty are kept as set
    status: Optional[DriverStatus] = None


class DriverOut(BaseModel):
    id: int
    full_name: str
    license_number: str
    license_expiry: date
    license_category: str
    phone: str
    toxicology_exam_date: date
    status: DriverStatus
    notes: Optional[str]
    # Derived at read time
    license_valid: bool
    exam_valid: bool
    exam_expiry: date
    document_status: DocumentStatus
    days_to_license_expiry: int
    days_to_exam_expiry: int

    class Config:
        from_attributes = True


class DriverSummary(BaseModel):
    id: int
    full_name: str
    phone: str

    class Config:
        from_attributes = True


class DriverExpiryAlerts(BaseModel):
    expired_documents: int
    license_expiring: int
    exam_expiring: int
    drivers: List[DriverOut]


class DriverStats(BaseModel):
    total: int
    by_status: Dict[str, int]
    by_document_status: Dict[str, int]
    by_license_category: Dict[str, int]


class RefreshResult(BaseModel):
    updated: int


class DriverPage(PageMeta):
    items: List[DriverOut]
