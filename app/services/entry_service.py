# app/services/entry_service.py
"""
Vehicle entry lifecycle: awaiting_yard → released → exited.

How it works:
  - create_entry stores a new entry, id = YYYYMMDDhhmmss of the local clock
    (also the printed barcode). Two entries in the same second collide; the
    second insert is rejected as a conflict.
  - approve_entry / exit_entry are conditional UPDATEs (WHERE status = ...),
    so a transition can never be applied twice: the loser of a race updates
    zero rows and gets a not-found / already-exited outcome.
  - purge_old_entries is the only delete, for exited entries past retention.

Operations return an EntryOutcome instead of raising; routers turn it into
the HTTP response.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, time
from typing import Optional

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.models.vehicle_entry import VehicleEntry, AWAITING_YARD, RELEASED, EXITED, OPEN_STATUSES
from app.utils.validators import is_valid_entry_code
from app.utils.logger import get_logger

logger = get_logger(__name__)

# Outcome codes
SUCCESS = "success"
NOT_FOUND = "not_found"
ALREADY_EXITED = "already_exited"
NOT_LIBERATED = "not_liberated"
INVALID_CODE = "invalid_code"
CONFLICT = "conflict"
INVALID_STATUS = "invalid_status"

_SEARCHABLE_COLUMNS = (
    VehicleEntry.id, VehicleEntry.driver_name, VehicleEntry.assistant1_name, VehicleEntry.assistant2_name,
    VehicleEntry.transport_company_name, VehicleEntry.plate1, VehicleEntry.plate2, VehicleEntry.plate3,
    VehicleEntry.internal_destination_name, VehicleEntry.movement_type, VehicleEntry.observation,
    VehicleEntry.status, VehicleEntry.registered_by, VehicleEntry.liberated_by,
)


@dataclass
class EntryOutcome:
    status: str
    message: str
    entry: Optional[VehicleEntry] = None

    @property
    def success(self) -> bool:
        return self.status == SUCCESS


def generate_entry_id(now: datetime) -> str:
    """14-digit YYYYMMDDhhmmss. No sub-second component: same-second ids are equal."""
    return now.strftime("%Y%m%d%H%M%S")


def get_entry(db: Session, entry_id: str) -> Optional[VehicleEntry]:
    return db.query(VehicleEntry).filter(VehicleEntry.id == entry_id).first()


def create_entry(db: Session, data: dict, status: str, registered_by: str,
                 liberated_by: Optional[str] = None, now: Optional[datetime] = None) -> EntryOutcome:
    if status not in OPEN_STATUSES:
        return EntryOutcome(INVALID_STATUS, f"Entries cannot be created with status '{status}'")

    now = now or datetime.now()
    entry = VehicleEntry(
        id=generate_entry_id(now),
        **data,
        arrival_timestamp=now,
        status=status,
        registered_by=registered_by,
        notified=False,
    )
    if status == RELEASED:
        entry.liberation_timestamp = now
        entry.liberated_by = (liberated_by or "").strip() or registered_by

    db.add(entry)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"[ENTRY] Id {entry.id} already exists — two registrations in the same second")
        return EntryOutcome(CONFLICT, f"An entry with code {entry.id} already exists. Try again in a second.")

    db.refresh(entry)
    logger.info(f"[ENTRY] {entry.id} plate={entry.plate1} status={entry.status} by={registered_by}")
    return EntryOutcome(SUCCESS, "Entry registered.", entry)


def approve_entry(db: Session, entry_id: str, liberated_by: Optional[str] = None,
                  now: Optional[datetime] = None, commit: bool = True) -> EntryOutcome:
    """
    awaiting_yard → released. Any other state (or a missing entry) is reported as
    not_found and leaves the row untouched. With commit=False the caller owns the
    transaction (used by the approval workflow).
    """
    now = now or datetime.now()
    result = db.execute(
        update(VehicleEntry)
        .where(VehicleEntry.id == entry_id, VehicleEntry.status == AWAITING_YARD)
        .values(status=RELEASED, liberation_timestamp=now, liberated_by=(liberated_by or "").strip())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        if commit:
            db.rollback()
        logger.warning(f"[APPROVAL] Entry {entry_id} not found or not awaiting release")
        return EntryOutcome(NOT_FOUND, "Vehicle not found or already released.")

    if commit:
        db.commit()
    entry = get_entry(db, entry_id)
    db.refresh(entry)
    logger.info(f"[APPROVAL] {entry_id} released by {entry.liberated_by or '-'}")
    return EntryOutcome(SUCCESS, f"Vehicle {entry.plate1} released.", entry)


def exit_entry(db: Session, code: str, now: Optional[datetime] = None) -> EntryOutcome:
    """released → exited, looked up by the scanned 14-digit code."""
    code = (code or "").strip()
    if not is_valid_entry_code(code):
        return EntryOutcome(INVALID_CODE, "The code must have exactly 14 digits.")

    entry = (
        db.query(VehicleEntry)
        .filter(VehicleEntry.id == code, VehicleEntry.status.in_(OPEN_STATUSES))
        .first()
    )
    if not entry:
        exited = get_entry(db, code)
        if exited:
            logger.info(f"[EXIT] {code} already exited")
            return EntryOutcome(ALREADY_EXITED, "This vehicle has already exited.", exited)
        logger.warning(f"[EXIT] Code {code} not found")
        return EntryOutcome(NOT_FOUND, "Code not found in the system.")

    if entry.status == AWAITING_YARD:
        logger.warning(f"[EXIT] {code} still awaiting release — exit refused")
        return EntryOutcome(NOT_LIBERATED, f"Vehicle {entry.plate1} has not been released yet.", entry)

    now = now or datetime.now()
    result = db.execute(
        update(VehicleEntry)
        .where(VehicleEntry.id == code, VehicleEntry.status == RELEASED)
        .values(status=EXITED, exit_timestamp=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        return EntryOutcome(ALREADY_EXITED, "This vehicle has already exited.")

    db.commit()
    db.refresh(entry)
    logger.info(f"[EXIT] {code} plate={entry.plate1} exited")
    return EntryOutcome(SUCCESS, "Exit registered.", entry)


def list_entries_by_status(db: Session, statuses) -> list:
    """Oldest arrival first, the order vehicles queue at the gate."""
    if isinstance(statuses, str):
        statuses = [statuses]
    return (
        db.query(VehicleEntry)
        .filter(VehicleEntry.status.in_(list(statuses)))
        .order_by(VehicleEntry.arrival_timestamp.asc())
        .all()
    )


def search_entries(db: Session, term: str = None, transport_company: str = None, plate: str = None,
                   date_from=None, date_to=None, limit: int = 500) -> list:
    """
    Access history, newest first. A free-text term matches any text column and
    overrides the other filters. date_to includes the whole day.
    """
    q = db.query(VehicleEntry)
    if term and term.strip():
        like = f"%{term.strip().lower()}%"
        q = q.filter(or_(*[col.ilike(like) for col in _SEARCHABLE_COLUMNS]))
    else:
        if transport_company:
            q = q.filter(VehicleEntry.transport_company_name.ilike(f"%{transport_company.strip()}%"))
        if plate:
            like = f"%{plate.strip()}%"
            q = q.filter(or_(VehicleEntry.plate1.ilike(like), VehicleEntry.plate2.ilike(like),
                             VehicleEntry.plate3.ilike(like)))
        if date_from:
            q = q.filter(VehicleEntry.arrival_timestamp >= datetime.combine(date_from, time.min))
        if date_to:
            q = q.filter(VehicleEntry.arrival_timestamp <= datetime.combine(date_to, time.max))
    return q.order_by(VehicleEntry.arrival_timestamp.desc()).limit(limit).all()


def retention_cutoff(now: Optional[datetime] = None) -> datetime:
    return (now or datetime.now()) - timedelta(days=settings.RETENTION_DAYS)


def purge_old_entries(db: Session, now: Optional[datetime] = None) -> int:
    """Delete exited entries whose exit is older than RETENTION_DAYS. Open entries are never touched."""
    cutoff = retention_cutoff(now)
    deleted = (
        db.query(VehicleEntry)
        .filter(VehicleEntry.status == EXITED, VehicleEntry.exit_timestamp < cutoff)
        .delete(synchronize_session=False)
    )
    db.commit()
    logger.info(f"[RETENTION] {deleted} exited entries older than {cutoff:%Y-%m-%d} removed")
    return deleted
