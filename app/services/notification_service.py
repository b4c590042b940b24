# app/services/notification_service.py
"""
Release requests and the approvers' live feed.

Rows in `notifications` are the pending requests. NotificationChannel pushes
changes to connected approvers:
  - on subscribe: one "snapshot" event with every pending request (initial=True)
  - afterwards:   "added" / "removed" events (initial=False, i.e. new since subscribing)
so clients can alert on genuinely new requests without re-alerting old ones.

The channel lives in this process. Another worker's changes reach a client
the next time it (re)subscribes and receives a fresh snapshot.
"""

import itertools
from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, Optional

from sqlalchemy.orm import Session

from app.models.notification import Notification
from app.models.vehicle_entry import VehicleEntry, AWAITING_YARD
from app.schemas.notification import NotificationOut
from app.services.reference_service import find_person_by_name
from app.utils.logger import get_logger

logger = get_logger(__name__)

SNAPSHOT = "snapshot"
ADDED = "added"
REMOVED = "removed"


@dataclass
class NotificationEvent:
    kind: str                                   # snapshot | added | removed
    notifications: list = field(default_factory=list)
    initial: bool = False

    def to_dict(self) -> dict:
        return {
            "type": self.kind,
            "initial": self.initial,
            "notifications": [NotificationOut.model_validate(n).model_dump(mode="json") for n in self.notifications],
        }


Callback = Callable[[NotificationEvent], Awaitable[None]]


class NotificationChannel:
    def __init__(self):
        self._subscribers: dict[int, Callback] = {}
        self._ids = itertools.count(1)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def subscribe(self, db: Session, callback: Callback) -> Callable[[], None]:
        """
        Deliver the current set, then changes. Returns an idempotent unsubscribe.

        The subscriber is registered before the snapshot is sent; events published
        while the snapshot is in flight are held back and delivered right after it.
        """
        snapshot = NotificationEvent(SNAPSHOT, list_pending(db), initial=True)
        sub_id = next(self._ids)
        backlog = []

        async def hold(event: NotificationEvent):
            backlog.append(event)

        self._subscribers[sub_id] = hold
        try:
            await callback(snapshot)
            while backlog:
                await callback(backlog.pop(0))
        except Exception:
            self._subscribers.pop(sub_id, None)
            raise
        if sub_id in self._subscribers:
            self._subscribers[sub_id] = callback
        logger.debug(f"[NOTIFY] subscriber {sub_id} joined (total={len(self._subscribers)})")

        def unsubscribe():
            if self._subscribers.pop(sub_id, None) is not None:
                logger.debug(f"[NOTIFY] subscriber {sub_id} left (total={len(self._subscribers)})")

        return unsubscribe

    async def publish(self, event: NotificationEvent) -> None:
        for sub_id, callback in list(self._subscribers.items()):
            try:
                await callback(event)
            except Exception as e:
                logger.warning(f"[NOTIFY] dropping subscriber {sub_id}: {e}")
                self._subscribers.pop(sub_id, None)


channel = NotificationChannel()


@dataclass
class ReleaseRequestOutcome:
    status: str                                 # success | not_found
    message: str
    notification: Optional[Notification] = None

    @property
    def success(self) -> bool:
        return self.status == "success"


def list_pending(db: Session) -> list:
    """Pending requests, newest first."""
    return db.query(Notification).order_by(Notification.created_at.desc(), Notification.id.desc()).all()


def get_notification(db: Session, notification_id: int) -> Optional[Notification]:
    return db.query(Notification).filter(Notification.id == notification_id).first()


def notifications_for_entry(db: Session, entry_id: str) -> list:
    return db.query(Notification).filter(Notification.vehicle_entry_id == entry_id).all()


async def request_release(db: Session, entry_id: str, requested_by: str,
                          notifier: NotificationChannel = None) -> ReleaseRequestOutcome:
    """
    Ask approvers to release an entry waiting in the yard.
    Calling it again for the same entry adds another row; all of them are
    removed together when the entry is released.
    """
    notifier = notifier or channel
    entry = (
        db.query(VehicleEntry)
        .filter(VehicleEntry.id == entry_id, VehicleEntry.status == AWAITING_YARD)
        .first()
    )
    if not entry:
        logger.warning(f"[NOTIFY] Release request for {entry_id} ignored — not awaiting release")
        return ReleaseRequestOutcome("not_found", "Vehicle not found or not awaiting release.")

    driver = find_person_by_name(db, entry.driver_name)
    notification = Notification(
        vehicle_entry_id=entry.id,
        plate1=entry.plate1,
        driver_name=entry.driver_name,
        driver_phone=(driver.phone or "") if driver else "",
        internal_destination_name=entry.internal_destination_name,
        created_at=datetime.now(),
        created_by=requested_by,
    )
    db.add(notification)
    entry.notified = True
    db.commit()
    db.refresh(notification)

    logger.info(f"[NOTIFY] Release requested for {entry.id} plate={entry.plate1} by {requested_by}")
    await notifier.publish(NotificationEvent(ADDED, [notification]))
    return ReleaseRequestOutcome("success", f"Approvers notified about vehicle {entry.plate1}.", notification)


def delete_for_entry(db: Session, entry_id: str) -> list:
    """
    Remove every request for an entry inside the caller's transaction.
    Returns plain snapshots of the removed rows, usable after commit.
    """
    rows = notifications_for_entry(db, entry_id)
    removed = [NotificationOut.model_validate(row) for row in rows]
    for row in rows:
        db.delete(row)
    return removed
