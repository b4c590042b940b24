# app/schemas/notification.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class NotificationOut(BaseModel):
    id: int
    vehicle_entry_id: str
    plate1: str
    driver_name: str
    driver_phone: str
    internal_destination_name: Optional[str]
    created_at: datetime
    created_by: str

    class Config:
        from_attributes = True


class RequestReleaseOut(BaseModel):
    status: str
    message: str
    notification: Optional[NotificationOut] = None
