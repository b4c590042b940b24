# app/schemas/user.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Literal, Optional

RoleName = Literal["admin", "user", "gate_agent", "exit_agent"]


class UserCreate(BaseModel):
    name: str = Field(min_length=3, max_length=200)
    login: str = Field(min_length=3, max_length=100)
    password: str = Field(min_length=4, max_length=128)
    role: RoleName = "user"
    can_view_dashboard: bool = False


class UserUpdate(BaseModel):
    name: str = Field(min_length=3, max_length=200)
    login: str = Field(min_length=3, max_length=100)
    password: Optional[str] = Field(default=None, min_length=4, max_length=128)   # None keeps the current one
    role: RoleName
    can_view_dashboard: bool = False


class UserOut(BaseModel):
    id: str
    name: str
    login: str
    role: str
    can_view_dashboard: bool
    created_at: Optional[datetime]

    class Config:
        from_attributes = True
