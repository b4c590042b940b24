# app/services/approval_service.py
"""
Approval workflow: an approver confirms a gate agent's release request.

confirm_approval(notification_id):
  1. Request already gone          → success, no effect (another approver won)
  2. In ONE transaction:
       a. release the entry (conditional UPDATE ... WHERE status='awaiting_yard')
       b. delete every notification for that entry
  3. Nothing released:
       entry missing               → failure "vehicle not found", orphan requests cleaned up
       entry already released/exited → success, no effect
  4. Render the receipt for the released entry. A rendering failure is reported
     on the outcome but never undoes the release.
  5. Tell live subscribers which requests disappeared.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.models.vehicle_entry import VehicleEntry
from app.services import entry_service
from app.services.auth_service import find_user_by_login
from app.services.document_service import DocumentResult, generate_entry_document
from app.services.notification_service import (
    NotificationChannel, NotificationEvent, REMOVED, channel, delete_for_entry, get_notification,
)
from app.utils.logger import get_logger

logger = get_logger(__name__)

RELEASED = "released"
ALREADY_PROCESSED = "already_processed"
NOT_FOUND = "not_found"


@dataclass
class ApprovalOutcome:
    status: str
    message: str
    entry: Optional[VehicleEntry] = None
    document: Optional[DocumentResult] = None

    @property
    def success(self) -> bool:
        return self.status != NOT_FOUND

    @property
    def document_error(self) -> Optional[str]:
        if self.document is not None and not self.document.success:
            return self.document.error or "Document generation failed"
        return None


def resolve_display_name(db: Session, login: str) -> str:
    """Requester's display name; the raw login when the account is unknown."""
    user = find_user_by_login(db, login)
    return user.name if user else login


async def confirm_approval(db: Session, notification_id: int, approver: str,
                           notifier: NotificationChannel = None,
                           render: Callable = None,
                           now: Optional[datetime] = None) -> ApprovalOutcome:
    notifier = notifier or channel
    render = render or generate_entry_document

    notification = get_notification(db, notification_id)
    if notification is None:
        logger.info(f"[APPROVAL] Request {notification_id} already handled — nothing to do ({approver})")
        return ApprovalOutcome(ALREADY_PROCESSED, "This request was already handled.")

    entry_id = notification.vehicle_entry_id
    requested_by = notification.created_by
    liberated_by = resolve_display_name(db, requested_by)

    try:
        released = entry_service.approve_entry(db, entry_id, liberated_by, now=now, commit=False)
        removed = delete_for_entry(db, entry_id)
        db.commit()
    except Exception:
        db.rollback()
        logger.error(f"[APPROVAL] Transaction failed for entry {entry_id}", exc_info=True)
        raise

    if removed:
        await notifier.publish(NotificationEvent(REMOVED, removed))

    if not released.success:
        entry = entry_service.get_entry(db, entry_id)
        if entry is None:
            logger.warning(f"[APPROVAL] Entry {entry_id} vanished — {len(removed)} orphan request(s) removed")
            return ApprovalOutcome(NOT_FOUND, "Vehicle not found.")
        logger.info(f"[APPROVAL] Entry {entry_id} already {entry.status} — no effect ({approver})")
        return ApprovalOutcome(ALREADY_PROCESSED, f"Vehicle {entry.plate1} was already released.", entry)

    entry = released.entry
    logger.info(f"[APPROVAL] {entry_id} confirmed by {approver}, requested by {requested_by}")

    document = render(entry)
    if not document.success:
        logger.error(f"[APPROVAL] {entry_id} released but receipt failed: {document.error}")
        return ApprovalOutcome(RELEASED, f"Vehicle {entry.plate1} released. The receipt could not be generated.",
                               entry, document)
    return ApprovalOutcome(RELEASED, f"Vehicle {entry.plate1} released.", entry, document)


async def release_directly(db: Session, entry_id: str, liberated_by: str,
                           notifier: NotificationChannel = None,
                           render: Callable = None,
                           now: Optional[datetime] = None) -> ApprovalOutcome:
    """
    Release from the waiting list without going through a request (operator types
    who authorised it). Any pending requests for the entry are cleared in the same
    transaction.
    """
    notifier = notifier or channel
    render = render or generate_entry_document

    released = entry_service.approve_entry(db, entry_id, liberated_by, now=now, commit=False)
    if not released.success:
        db.rollback()
        return ApprovalOutcome(NOT_FOUND, released.message)

    removed = delete_for_entry(db, entry_id)
    db.commit()
    if removed:
        await notifier.publish(NotificationEvent(REMOVED, removed))

    entry = released.entry
    document = render(entry)
    return ApprovalOutcome(RELEASED, released.message, entry, document)
