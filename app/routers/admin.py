# app/routers/admin.py
"""
Admin review of bookings: listing, allocation candidates and lifecycle actions.
Every action returns the updated booking; refused actions leave it untouched
and come back as 4xx with a typed error body.
"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.enums import BookingStatus, VehicleCategory
from app.schemas.booking import (
    AllocationCandidatesOut, ApproveRequest, BookingCounts, BookingOut, NotesRequest,
    TransitionRequest,
)
from app.services import availability_service, booking_service, dashboard_service

router = APIRouter(prefix="/admin")


@router.get("/bookings", response_model=list[BookingOut], summary="List bookings (newest first)")
def list_bookings(status: Optional[BookingStatus] = None, date_from: Optional[date] = None,
                  date_to: Optional[date] = None, category: Optional[VehicleCategory] = None,
                  db: Session = Depends(get_db)):
    return dashboard_service.list_bookings(db, status, date_from, date_to, category)


@router.get("/bookings/summary", response_model=BookingCounts, summary="Booking counts per status")
def booking_summary(db: Session = Depends(get_db)):
    return dashboard_service.booking_counts(db)


@router.get("/bookings/{booking_id}", response_model=BookingOut)
def get_booking(booking_id: int, db: Session = Depends(get_db)):
    return booking_service.get_booking(db, booking_id)


@router.get("/bookings/{booking_id}/candidates", response_model=AllocationCandidatesOut,
            summary="Vehicles and drivers that can be allocated to this booking")
def allocation_candidates(booking_id: int, db: Session = Depends(get_db)):
    candidates = availability_service.list_allocation_candidates(db, booking_id)
    return {"booking_id": candidates.booking_id, "vehicles": candidates.vehicles, "drivers": candidates.drivers}


@router.post("/bookings/{booking_id}/approve", response_model=BookingOut)
def approve(booking_id: int, body: ApproveRequest, db: Session = Depends(get_db)):
    return booking_service.approve_booking(db, booking_id, body.vehicle_id, body.driver_id, body.notes)


@router.post("/bookings/{booking_id}/reject", response_model=BookingOut)
def reject(booking_id: int, body: NotesRequest, db: Session = Depends(get_db)):
    return booking_service.reject_booking(db, booking_id, body.notes)


@router.post("/bookings/{booking_id}/cancel", response_model=BookingOut)
def cancel(booking_id: int, body: NotesRequest, db: Session = Depends(get_db)):
    return booking_service.cancel_booking(db, booking_id, body.notes)


@router.post("/bookings/{booking_id}/start", response_model=BookingOut)
def start(booking_id: int, db: Session = Depends(get_db)):
    return booking_service.start_trip(db, booking_id)


@router.post("/bookings/{booking_id}/complete", response_model=BookingOut)
def complete(booking_id: int, body: Optional[NotesRequest] = None, db: Session = Depends(get_db)):
    return booking_service.complete_trip(db, booking_id, body.notes if body else None)


@router.post("/bookings/{booking_id}/transition", response_model=BookingOut,
             summary="Move a booking to any reachable status")
def transition(booking_id: int, body: TransitionRequest, db: Session = Depends(get_db)):
    return booking_service.transition_booking(db, booking_id, body.status, vehicle_id=body.vehicle_id,
                                              driver_id=body.driver_id, notes=body.notes)
