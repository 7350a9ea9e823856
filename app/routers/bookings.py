# app/routers/bookings.py
"""
Public booking endpoints.
POST /bookings                      — submit a trip request, returns its protocol
GET  /bookings/protocol/{protocol}  — look a request up by protocol
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.booking import BookingCreate, BookingCreated, BookingOut
from app.services import booking_service
from app.utils.exceptions import NotFoundError

router = APIRouter()


@router.post("/bookings", response_model=BookingCreated, status_code=status.HTTP_201_CREATED,
             summary="Submit a trip request")
def create_booking(body: BookingCreate, db: Session = Depends(get_db)):
    """Refused with 409 NO_AVAILABILITY when no vehicle of the category is free for the window."""
    booking = booking_service.create_booking(db, body)
    return {"protocol": booking.protocol, "status": booking.status}


@router.get("/bookings/protocol/{protocol}", response_model=BookingOut, summary="Look up a request by protocol")
def lookup_booking(protocol: str, db: Session = Depends(get_db)):
    booking = booking_service.lookup_by_protocol(db, protocol)
    if not booking:
        raise NotFoundError("Booking", protocol.strip())
    return booking
