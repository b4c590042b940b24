# app/services/reference_service.py
"""
Reference data CRUD: persons (drivers/assistants), transport companies and
internal destinations.

Uniqueness is checked before anything is written:
  - names compare trimmed and case-insensitive, ignoring the record being edited
  - person CPF must be unique among non-foreigners
A clash raises DuplicateRecordError naming the field, and the session is untouched.
"""

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.reference import Person, TransportCompany, InternalDestination
from app.services.errors import DuplicateRecordError, RecordNotFoundError
from app.utils.validators import normalize_name
from app.utils.logger import get_logger

logger = get_logger(__name__)

_LABELS = {
    Person: "Person",
    TransportCompany: "Transport company",
    InternalDestination: "Internal destination",
}


def list_records(db: Session, model):
    return db.query(model).order_by(model.name).all()


def get_record(db: Session, model, record_id: int):
    record = db.query(model).filter(model.id == record_id).first()
    if not record:
        raise RecordNotFoundError(_LABELS[model], record_id)
    return record


def name_exists(db: Session, model, name: str, exclude_id: int = None) -> bool:
    q = db.query(model).filter(func.lower(func.trim(model.name)) == normalize_name(name))
    if exclude_id is not None:
        q = q.filter(model.id != exclude_id)
    return q.first() is not None


def cpf_exists(db: Session, cpf: str, exclude_id: int = None) -> bool:
    if not cpf:
        return False
    q = db.query(Person).filter(Person.cpf == cpf)
    if exclude_id is not None:
        q = q.filter(Person.id != exclude_id)
    return q.first() is not None


def _check_unique_name(db: Session, model, name: str, exclude_id: int = None):
    if name_exists(db, model, name, exclude_id):
        raise DuplicateRecordError("name", f"{_LABELS[model]} '{name.strip()}' is already registered")


# ── Transport companies / internal destinations ─────────────────────────────

def create_named(db: Session, model, name: str):
    _check_unique_name(db, model, name)
    record = model(name=name.strip())
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info(f"[REFERENCE] {_LABELS[model]} created: {record.name}")
    return record


def update_named(db: Session, model, record_id: int, name: str):
    record = get_record(db, model, record_id)
    _check_unique_name(db, model, name, exclude_id=record_id)
    record.name = name.strip()
    db.commit()
    db.refresh(record)
    return record


def delete_record(db: Session, model, record_id: int) -> None:
    record = get_record(db, model, record_id)
    db.delete(record)
    db.commit()
    logger.info(f"[REFERENCE] {_LABELS[model]} {record_id} deleted")


# ── Persons ─────────────────────────────────────────────────────────────────

def _check_person(db: Session, data: dict, exclude_id: int = None):
    if not data.get("is_foreigner") and cpf_exists(db, data.get("cpf"), exclude_id):
        raise DuplicateRecordError("cpf", "This CPF is already registered")
    _check_unique_name(db, Person, data["name"], exclude_id)


def create_person(db: Session, data: dict) -> Person:
    _check_person(db, data)
    person = Person(**data)
    db.add(person)
    db.commit()
    db.refresh(person)
    logger.info(f"[REFERENCE] Person created: {person.name}")
    return person


def update_person(db: Session, person_id: int, data: dict) -> Person:
    person = get_record(db, Person, person_id)
    _check_person(db, data, exclude_id=person_id)
    for key, value in data.items():
        setattr(person, key, value)
    db.commit()
    db.refresh(person)
    return person


def find_person_by_name(db: Session, name: str):
    """Case-insensitive lookup used to enrich notifications with the driver's phone."""
    return db.query(Person).filter(func.lower(func.trim(Person.name)) == normalize_name(name)).first()
