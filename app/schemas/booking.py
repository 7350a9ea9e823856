# app/schemas/booking.py
from pydantic import BaseModel
from datetime import datetime
from typing import Dict, List, Optional
from app.models.enums import BookingStatus, VehicleCategory
from app.schemas.driver import DriverSummary
from app.schemas.vehicle import VehicleOut, VehicleSummary


class BookingCreate(BaseModel):
    departure_at: datetime
    arrival_at: datetime
    requester_name: str
    headcount: int
    destination: str
    description: Optional[str] = None
    required_category: VehicleCategory
    needs_driver: bool = False


class BookingCreated(BaseModel):
    protocol: str
    status: BookingStatus


class BookingOut(BaseModel):
    id: int
    protocol: str
    departure_at: datetime
    arrival_at: datetime
    requester_name: str
    headcount: int
    destination: str
    description: Optional[str]
    required_category: VehicleCategory
    needs_driver: bool
    status: BookingStatus
    created_at: datetime
    allocated_vehicle_id: Optional[int]
    allocated_driver_id: Optional[int]
    allocated_vehicle: Optional[VehicleSummary] = None
    allocated_driver: Optional[DriverSummary] = None
    admin_notes: Optional[str]

    class Config:
        from_attributes = True


class ApproveRequest(BaseModel):
    vehicle_id: Optional[int] = None
    driver_id: Optional[int] = None
    notes: Optional[str] = None


class NotesRequest(BaseModel):
    """Body for reject/cancel (notes mandatory) and complete (notes optional)."""
    notes: Optional[str] = None


class AllocationCandidatesOut(BaseModel):
    booking_id: int
    vehicles: List[VehicleOut]
    drivers: List[DriverSummary]


class BookingCounts(BaseModel):
    total: int
    by_status: Dict[str, int]


class TransitionRequest(ApproveRequest):
    status: BookingStatus


class ResourceUsage(BaseModel):
    """Booking history of one vehicle or driver."""
    active_bookings: List[BookingOut]
    history: List[BookingOut]
    total_bookings: int
    bookings_this_year: int
    bookings_this_month: int
    last_used_at: Optional[datetime]
    next_available_at: Optional[datetime]    # None: not held by an approved/in-progress booking
    can_remove: bool
