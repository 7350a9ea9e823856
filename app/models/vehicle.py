# app/models/vehicle.py
"""
Fleet vehicles table.
Status is flipped by booking transitions (reserved → in_use → available)
or edited by an admin. Vehicles are never hard-deleted; removal moves them
to maintenance with an audit note.
"""

from sqlalchemy import Column, Integer, String, Text
from sqlalchemy.orm import relationship
from app.database import Base
from app.models.enums import VehicleCategory, VehicleStatus, enum_column_type


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    plate = Column(String(8), unique=True, nullable=False, index=True)   # ABC-1234 | ABC-1D23
    model = Column(String(50), nullable=False)
    category = Column(enum_column_type(VehicleCategory), nullable=False, index=True)
    passenger_capacity = Column(Integer, nullable=False)
    status = Column(enum_column_type(VehicleStatus), nullable=False,
                    default=VehicleStatus.AVAILABLE, index=True)
    notes = Column(Text)
    # Bumped on every UPDATE; a stale write fails with StaleDataError
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    # Read-only view; only Booking owns the foreign key
    bookings = relationship("Booking", back_populates="allocated_vehicle", passive_deletes=True)

    @property
    def display_text(self) -> str:
        suffix = "" if self.status == VehicleStatus.AVAILABLE else f" ({self.status.value})"
        return f"{self.model} - {self.plate} (Cap: {self.passenger_capacity}){suffix}"

    def __repr__(self):
        return f"<Vehicle {self.plate} model={self.model} status={self.status}>"
