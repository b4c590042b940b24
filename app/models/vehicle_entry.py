# app/models/vehicle_entry.py
"""
Vehicle entries table: one row per vehicle gate crossing, from arrival to exit.
The 14-digit id (YYYYMMDDhhmmss) is both the primary key and the printed barcode.
Status only moves forward: awaiting_yard → released → exited.
"""

from sqlalchemy import Column, String, DateTime, Text, Boolean
from app.database import Base

AWAITING_YARD = "awaiting_yard"
RELEASED = "released"
EXITED = "exited"

ENTRY_STATUSES = (AWAITING_YARD, RELEASED, EXITED)
OPEN_STATUSES = (AWAITING_YARD, RELEASED)


class VehicleEntry(Base):
    __tablename__ = "vehicle_entries"

    id = Column(String(14), primary_key=True)
    driver_name = Column(String(200), nullable=False)
    assistant1_name = Column(String(200))
    assistant2_name = Column(String(200))
    transport_company_name = Column(String(200), nullable=False, index=True)
    plate1 = Column(String(8), nullable=False, index=True)
    plate2 = Column(String(8))
    plate3 = Column(String(8))
    internal_destination_name = Column(String(200), nullable=False)
    movement_type = Column(String(100), nullable=False)
    observation = Column(Text)
    arrival_timestamp = Column(DateTime, nullable=False, index=True)
    liberation_timestamp = Column(DateTime)
    exit_timestamp = Column(DateTime, index=True)
    status = Column(String(20), nullable=False, index=True)   # awaiting_yard | released | exited
    registered_by = Column(String(100), nullable=False)       # user login
    liberated_by = Column(String(200))                        # display name or login
    notified = Column(Boolean, default=False, nullable=False)

    def __repr__(self):
        return f"<VehicleEntry {self.id} plate={self.plate1} status={self.status}>"
