# app/models/notification.py
"""
Pending release requests. A row exists only while its entry waits in the yard;
every row for an entry is deleted when the entry is released.
Snapshot columns are denormalized so the approver feed needs no join.
"""

from sqlalchemy import Column, Integer, String, DateTime
from app.database import Base


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_entry_id = Column(String(14), nullable=False, index=True)
    plate1 = Column(String(8), nullable=False)
    driver_name = Column(String(200), nullable=False)
    driver_phone = Column(String(20), default="", nullable=False)
    internal_destination_name = Column(String(200))
    created_at = Column(DateTime, nullable=False, index=True)
    created_by = Column(String(100), nullable=False)   # login of the requester

    def __repr__(self):
        return f"<Notification {self.id} entry={self.vehicle_entry_id} by={self.created_by}>"
