# app/routers/entries.py
"""
Vehicle entry endpoints: registration, release, exit, lists, history, receipts.
Lifecycle outcomes that are not successes come back as HTTP errors whose
detail carries {status, message[, entry]} for the operator's message box.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import User
from app.models.vehicle_entry import AWAITING_YARD, RELEASED
from app.schemas.vehicle_entry import (
    ApproveEntryRequest, EntryActionOut, ExitRequest, PurgeOut, VehicleEntryCreate, VehicleEntryData,
    VehicleEntryOut,
)
from app.schemas.notification import NotificationOut, RequestReleaseOut
from app.security import require_action
from app.services import entry_service
from app.services.access_control import Action
from app.services.approval_service import ApprovalOutcome, release_directly
from app.services.document_service import generate_entry_document
from app.services.notification_service import request_release
from app.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)

_HTTP_STATUS = {
    entry_service.NOT_FOUND: 404,
    entry_service.ALREADY_EXITED: 409,
    entry_service.NOT_LIBERATED: 409,
    entry_service.CONFLICT: 409,
    entry_service.INVALID_CODE: 422,
    entry_service.INVALID_STATUS: 422,
}


def _raise_for(outcome: entry_service.EntryOutcome):
    detail = {"status": outcome.status, "message": outcome.message}
    if outcome.entry is not None:
        detail["entry"] = jsonable_encoder(VehicleEntryOut.model_validate(outcome.entry))
    raise HTTPException(status_code=_HTTP_STATUS.get(outcome.status, 400), detail=detail)


def _with_document(outcome, message: str) -> EntryActionOut:
    """Render the receipt for a released entry. Rendering failure never fails the request."""
    document = generate_entry_document(outcome.entry)
    return EntryActionOut(
        status=outcome.status,
        message=message,
        entry=VehicleEntryOut.model_validate(outcome.entry),
        document_url=document.image_url,
        document_error=None if document.success else (document.error or "Document generation failed"),
    )


def approval_result(outcome: ApprovalOutcome) -> EntryActionOut:
    return EntryActionOut(
        status=outcome.status,
        message=outcome.message,
        entry=VehicleEntryOut.model_validate(outcome.entry) if outcome.entry is not None else None,
        document_url=outcome.document.image_url if outcome.document else None,
        document_error=outcome.document_error,
    )


@router.post("/entries", response_model=EntryActionOut, summary="Register a vehicle arrival")
async def create_entry(body: VehicleEntryCreate, db: Session = Depends(get_db),
                       user: User = Depends(require_action(Action.CREATE_ENTRY))):
    """
    status=awaiting_yard parks the vehicle in the yard (and notifies approvers unless
    request_release=false); status=released lets it in immediately and returns the receipt.
    """
    data = body.model_dump(include=set(VehicleEntryData.model_fields))
    outcome = entry_service.create_entry(db, data, body.status, user.login, liberated_by=body.liberated_by)
    if not outcome.success:
        _raise_for(outcome)

    if outcome.entry.status == RELEASED:
        return _with_document(outcome, f"Entry of {outcome.entry.plate1} registered.")

    message = f"Vehicle {outcome.entry.plate1} sent to the yard, awaiting release."
    if body.request_release:
        notified = await request_release(db, outcome.entry.id, user.login)
        if notified.success:
            db.refresh(outcome.entry)
    return EntryActionOut(status=outcome.status, message=message,
                          entry=VehicleEntryOut.model_validate(outcome.entry))


@router.get("/entries/waiting", response_model=list[VehicleEntryOut], summary="Vehicles waiting in the yard")
def list_waiting(db: Session = Depends(get_db), user: User = Depends(require_action(Action.VIEW_WAITING))):
    return entry_service.list_entries_by_status(db, AWAITING_YARD)


@router.get("/entries/inside", response_model=list[VehicleEntryOut], summary="Vehicles inside the factory")
def list_inside(db: Session = Depends(get_db), user: User = Depends(require_action(Action.VIEW_INSIDE))):
    return entry_service.list_entries_by_status(db, RELEASED)


@router.get("/entries", response_model=list[VehicleEntryOut], summary="Access history")
def search_history(term: Optional[str] = None, transport_company: Optional[str] = None,
                   plate: Optional[str] = None, date_from: Optional[date] = None,
                   date_to: Optional[date] = None, limit: int = 500,
                   db: Session = Depends(get_db), user: User = Depends(require_action(Action.VIEW_HISTORY))):
    """Free-text `term` overrides the other filters. Newest first."""
    return entry_service.search_entries(db, term, transport_company, plate, date_from, date_to, limit)


@router.post("/entries/exit", response_model=EntryActionOut, summary="Register a vehicle exit by barcode")
def register_exit(body: ExitRequest, db: Session = Depends(get_db),
                  user: User = Depends(require_action(Action.EXIT_ENTRY))):
    outcome = entry_service.exit_entry(db, body.code)
    if not outcome.success:
        _raise_for(outcome)
    return EntryActionOut(status=outcome.status, message=outcome.message,
                          entry=VehicleEntryOut.model_validate(outcome.entry))


@router.delete("/entries/retention", response_model=PurgeOut, summary="Purge exited entries past retention")
def purge_history(db: Session = Depends(get_db), user: User = Depends(require_action(Action.PURGE_HISTORY))):
    cutoff = entry_service.retention_cutoff()
    deleted = entry_service.purge_old_entries(db)
    logger.info(f"[RETENTION] Purge requested by {user.login}")
    return PurgeOut(deleted=deleted, cutoff=cutoff)


@router.get("/entries/{entry_id}", response_model=VehicleEntryOut, summary="Entry by code")
def get_entry(entry_id: str, db: Session = Depends(get_db),
              user: User = Depends(require_action(Action.VIEW_HISTORY))):
    entry = entry_service.get_entry(db, entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="Entry not found")
    return entry


@router.post("/entries/{entry_id}/approve", response_model=EntryActionOut, summary="Release a waiting vehicle")
async def approve_entry(entry_id: str, body: ApproveEntryRequest = None, db: Session = Depends(get_db),
                        user: User = Depends(require_action(Action.APPROVE_ENTRY))):
    """Direct release from the waiting list, without a pending request. Clears any requests for it."""
    liberated_by = (body.liberated_by if body else None) or user.name
    outcome = await release_directly(db, entry_id, liberated_by)
    if not outcome.success:
        raise HTTPException(status_code=404, detail={"status": outcome.status, "message": outcome.message})
    return approval_result(outcome)


@router.post("/entries/{entry_id}/request-release", response_model=RequestReleaseOut,
             summary="Notify approvers about a waiting vehicle")
async def notify_approvers(entry_id: str, db: Session = Depends(get_db),
                           user: User = Depends(require_action(Action.REQUEST_RELEASE))):
    outcome = await request_release(db, entry_id, user.login)
    if not outcome.success:
        raise HTTPException(status_code=404, detail={"status": outcome.status, "message": outcome.message})
    return RequestReleaseOut(status=outcome.status, message=outcome.message,
                             notification=NotificationOut.model_validate(outcome.notification))


@router.get("/entries/{entry_id}/document", summary="Render the entry receipt for printing")
def entry_document(entry_id: str, db: Session = Depends(get_db),
                   user: User = Depends(require_action(Action.PRINT_DOCUMENT))):
    entry = entry_service.get_entry(db, entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="Entry not found")
    document = generate_entry_document(entry)
    return {"success": document.success, "image_url": document.image_url, "error": document.error}
