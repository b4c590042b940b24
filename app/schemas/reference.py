# app/schemas/reference.py
from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import date
from typing import Optional

from app.utils.validators import is_valid_cpf, only_digits


class NameIn(BaseModel):
    """Body for transport companies and internal destinations."""
    name: str = Field(min_length=1, max_length=200)

    @field_validator("name")
    @classmethod
    def clean_name(cls, v):
        v = v.strip().upper()
        if not v:
            raise ValueError("name is required")
        return v


class NamedOut(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class PersonIn(BaseModel):
    name: str = Field(min_length=3, max_length=200)
    cpf: str = ""
    cnh: Optional[str] = None
    cnh_expiration_date: Optional[date] = None
    phone: Optional[str] = None
    is_blocked: bool = False
    is_foreigner: bool = False

    @field_validator("name")
    @classmethod
    def clean_name(cls, v):
        v = v.strip().upper()
        if len(v) < 3:
            raise ValueError("name must have at least 3 characters")
        return v

    @field_validator("phone")
    @classmethod
    def clean_phone(cls, v):
        digits = only_digits(v)[:11]
        return digits or None

    @model_validator(mode="after")
    def check_documents(self):
        if self.cnh and self.cnh.strip() and self.cnh_expiration_date is None:
            raise ValueError("cnh_expiration_date is required when cnh is given")
        if self.is_foreigner:
            self.cpf = ""
        elif not is_valid_cpf(self.cpf):
            raise ValueError("cpf must have exactly 11 digits")
        return self


class PersonOut(BaseModel):
    id: int
    name: str
    cpf: str
    cnh: Optional[str]
    cnh_expiration_date: Optional[date]
    phone: Optional[str]
    is_blocked: bool
    is_foreigner: bool

    class Config:
        from_attributes = True
