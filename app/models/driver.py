# app/models/driver.py
"""
Drivers table.
License and toxicology-exam validity are derived from the stored dates
(see driver_service); only the dates are persisted.
"""

from sqlalchemy import Column, Integer, String, Date, Text
from sqlalchemy.orm import relationship
from app.database import Base
from app.models.enums import DriverStatus, enum_column_type


class Driver(Base):
    __tablename__ = "drivers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    full_name = Column(String(100), nullable=False)
    license_number = Column(String(20), unique=True, nullable=False, index=True)   # 11 digits
    license_expiry = Column(Date, nullable=False)
    license_category = Column(String(5), nullable=False)      # A | B | C | D | E | AB | AC | AD | AE
    phone = Column(String(15), nullable=False)
    toxicology_exam_date = Column(Date, nullable=False)
    status = Column(enum_column_type(DriverStatus), nullable=False,
                    default=DriverStatus.AVAILABLE, index=True)
    notes = Column(Text)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    bookings = relationship("Booking", back_populates="allocated_driver", passive_deletes=True)

    def __repr__(self):
        return f"<Driver {self.id} name={self.full_name} status={self.status}>"
