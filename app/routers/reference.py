# app/routers/reference.py
"""
Reference data CRUD: persons, transport companies, internal destinations.
Duplicates come back as 409 {field, message}; unknown ids as 404
(both via the handlers in main.py).
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.reference import InternalDestination, Person, TransportCompany
from app.models.user import User
from app.schemas.reference import NamedOut, NameIn, PersonIn, PersonOut
from app.security import require_action
from app.services import reference_service
from app.services.access_control import Action

router = APIRouter()

_view = require_action(Action.VIEW_REFERENCE)
_manage = require_action(Action.MANAGE_REFERENCE)


# ── Persons ─────────────────────────────────────────────────────────────────

@router.get("/persons", response_model=list[PersonOut], summary="Drivers and assistants")
def list_persons(db: Session = Depends(get_db), user: User = Depends(_view)):
    return reference_service.list_records(db, Person)


@router.post("/persons", response_model=PersonOut, status_code=status.HTTP_201_CREATED, summary="Add a person")
def create_person(body: PersonIn, db: Session = Depends(get_db), user: User = Depends(_manage)):
    return reference_service.create_person(db, body.model_dump())


@router.put("/persons/{person_id}", response_model=PersonOut, summary="Edit a person")
def update_person(person_id: int, body: PersonIn, db: Session = Depends(get_db), user: User = Depends(_manage)):
    return reference_service.update_person(db, person_id, body.model_dump())


@router.delete("/persons/{person_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Remove a person")
def delete_person(person_id: int, db: Session = Depends(get_db), user: User = Depends(_manage)):
    reference_service.delete_record(db, Person, person_id)


# ── Transport companies / internal destinations ─────────────────────────────

def _register_named(path: str, model, label: str):
    """GET/POST on `path` and PUT/DELETE on `path/{record_id}` for a name-only table."""

    @router.get(path, response_model=list[NamedOut], summary=f"{label} list", name=f"list_{model.__tablename__}")
    def list_named(db: Session = Depends(get_db), user: User = Depends(_view)):
        return reference_service.list_records(db, model)

    @router.post(path, response_model=NamedOut, status_code=status.HTTP_201_CREATED,
                 summary=f"Add a {label.lower()}", name=f"create_{model.__tablename__}")
    def create_named(body: NameIn, db: Session = Depends(get_db), user: User = Depends(_manage)):
        return reference_service.create_named(db, model, body.name)

    @router.put(path + "/{record_id}", response_model=NamedOut,
                summary=f"Rename a {label.lower()}", name=f"update_{model.__tablename__}")
    def update_named(record_id: int, body: NameIn, db: Session = Depends(get_db), user: User = Depends(_manage)):
        return reference_service.update_named(db, model, record_id, body.name)

    @router.delete(path + "/{record_id}", status_code=status.HTTP_204_NO_CONTENT,
                   summary=f"Remove a {label.lower()}", name=f"delete_{model.__tablename__}")
    def delete_named(record_id: int, db: Session = Depends(get_db), user: User = Depends(_manage)):
        reference_service.delete_record(db, model, record_id)


_register_named("/transport-companies", TransportCompany, "Transport company")
_register_named("/internal-destinations", InternalDestination, "Internal destination")
