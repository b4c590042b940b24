# app/models/reference.py
"""
Reference data used to fill entry forms: persons (drivers and assistants),
transport companies and internal destinations.
Name uniqueness (trimmed, case-insensitive) is checked in reference_service.
"""

from sqlalchemy import Column, Integer, String, Boolean, Date
from app.database import Base


class Person(Base):
    __tablename__ = "persons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False, index=True)
    cpf = Column(String(11), default="", nullable=False, index=True)   # empty for foreigners
    cnh = Column(String(20))
    cnh_expiration_date = Column(Date)
    phone = Column(String(20))
    is_blocked = Column(Boolean, default=False, nullable=False)
    is_foreigner = Column(Boolean, default=False, nullable=False)

    def __repr__(self):
        return f"<Person {self.id} name={self.name}>"


class TransportCompany(Base):
    __tablename__ = "transport_companies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False, index=True)

    def __repr__(self):
        return f"<TransportCompany {self.id} name={self.name}>"


class InternalDestination(Base):
    __tablename__ = "internal_destinations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False, index=True)

    def __repr__(self):
        return f"<InternalDestination {self.id} name={self.name}>"
