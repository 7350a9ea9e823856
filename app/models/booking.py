# app/models/booking.py
"""
Trip requests and their allocation.
Booking is the only table referencing vehicles/drivers; both references are
nullable and set to NULL if the resource row is ever deleted.
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from app.database import Base
from app.models.enums import BookingStatus, VehicleCategory, enum_column_type


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    protocol = Column(String(20), unique=True, nullable=False, index=True)
    departure_at = Column(DateTime, nullable=False, index=True)
    arrival_at = Column(DateTime, nullable=False)
    requester_name = Column(String(100), nullable=False)
    headcount = Column(Integer, nullable=False)
    destination = Column(String(200), nullable=False)
    description = Column(String(500))
    required_category = Column(enum_column_type(VehicleCategory), nullable=False)
    needs_driver = Column(Boolean, nullable=False, default=False)
    status = Column(enum_column_type(BookingStatus), nullable=False,
                    default=BookingStatus.PENDING, index=True)
    created_at = Column(DateTime, nullable=False)

    # Set only while status implies an allocation (approved | in_progress | completed)
    allocated_vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="SET NULL"), index=True)
    allocated_driver_id = Column(Integer, ForeignKey("drivers.id", ondelete="SET NULL"), index=True)
    admin_notes = Column(Text)

    allocated_vehicle = relationship("Vehicle", back_populates="bookings")
    allocated_driver = relationship("Driver", back_populates="bookings")

    def __repr__(self):
        return f"<Booking {self.protocol} status={self.status} vehicle={self.allocated_vehicle_id}>"
