# app/schemas/vehicle_entry.py
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Literal, Optional

from app.utils.validators import is_valid_entry_code, is_valid_plate


class VehicleEntryData(BaseModel):
    """Fields typed by the operator when registering an arrival."""
    driver_name: str = Field(min_length=1, max_length=200)
    assistant1_name: Optional[str] = None
    assistant2_name: Optional[str] = None
    transport_company_name: str = Field(min_length=1, max_length=200)
    plate1: str
    plate2: Optional[str] = None
    plate3: Optional[str] = None
    internal_destination_name: str = Field(min_length=1, max_length=200)
    movement_type: str = Field(min_length=1, max_length=100)
    observation: Optional[str] = Field(default=None, max_length=500)

    @field_validator("assistant1_name", "assistant2_name", "plate2", "plate3", "observation", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("driver_name", "assistant1_name", "assistant2_name", "transport_company_name",
                     "plate1", "plate2", "plate3", "internal_destination_name", "movement_type")
    @classmethod
    def uppercase(cls, v):
        return v.strip().upper() if v is not None else v

    @field_validator("plate1", "plate2", "plate3")
    @classmethod
    def check_plate(cls, v):
        if v is not None and not is_valid_plate(v):
            raise ValueError("plate must have 7 or 8 characters")
        return v


class VehicleEntryCreate(VehicleEntryData):
    status: Literal["awaiting_yard", "released"] = "awaiting_yard"
    liberated_by: Optional[str] = None       # name typed when releasing on arrival
    request_release: bool = True             # notify approvers when waiting in the yard


class VehicleEntryOut(BaseModel):
    id: str
    driver_name: str
    assistant1_name: Optional[str]
    assistant2_name: Optional[str]
    transport_company_name: str
    plate1: str
    plate2: Optional[str]
    plate3: Optional[str]
    internal_destination_name: str
    movement_type: str
    observation: Optional[str]
    arrival_timestamp: datetime
    liberation_timestamp: Optional[datetime]
    exit_timestamp: Optional[datetime]
    status: str
    registered_by: str
    liberated_by: Optional[str]
    notified: bool

    class Config:
        from_attributes = True


class ApproveEntryRequest(BaseModel):
    liberated_by: Optional[str] = None


class ExitRequest(BaseModel):
    code: str

    @field_validator("code")
    @classmethod
    def check_code(cls, v):
        v = v.strip()
        if not is_valid_entry_code(v):
            raise ValueError("code must be exactly 14 digits")
        return v


class EntryActionOut(BaseModel):
    """Outcome of a lifecycle operation as shown to the operator."""
    status: str
    message: str
    entry: Optional[VehicleEntryOut] = None
    document_url: Optional[str] = None
    document_error: Optional[str] = None


class PurgeOut(BaseModel):
    deleted: int
    cutoff: datetime
