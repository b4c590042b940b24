# app/routers/notifications.py
"""
Release requests for approvers: the pending list, confirmation, and the live feed.

WebSocket /ws/notifications?token=<session token>
  first message: {"type": "snapshot", "initial": true,  "notifications": [...]}
  then:          {"type": "added" | "removed", "initial": false, "notifications": [...]}
"""

import json

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from app.database import SessionLocal, get_db
from app.models.user import User
from app.routers.entries import approval_result
from app.schemas.notification import NotificationOut
from app.schemas.vehicle_entry import EntryActionOut
from app.security import require_action
from app.services.access_control import Action, can
from app.services.approval_service import confirm_approval
from app.services.auth_service import resolve_session
from app.services.notification_service import NotificationEvent, channel, list_pending
from app.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.get("/notifications", response_model=list[NotificationOut], summary="Pending release requests")
def pending_requests(db: Session = Depends(get_db), user: User = Depends(require_action(Action.APPROVE_ENTRY))):
    return list_pending(db)


@router.post("/notifications/{notification_id}/confirm", response_model=EntryActionOut,
             summary="Confirm a release request")
async def confirm_request(notification_id: int, db: Session = Depends(get_db),
                          user: User = Depends(require_action(Action.APPROVE_ENTRY))):
    """
    Releases the vehicle and clears every request for it. A request someone
    else already handled comes back as already_processed, not as an error.
    """
    outcome = await confirm_approval(db, notification_id, user.login)
    if not outcome.success:
        raise HTTPException(status_code=404, detail={"status": outcome.status, "message": outcome.message})
    return approval_result(outcome)


@router.websocket("/ws/notifications")
async def notifications_feed(ws: WebSocket):
    token = ws.query_params.get("token")

    async def forward(event: NotificationEvent):
        await ws.send_text(json.dumps(jsonable_encoder(event.to_dict())))

    # Session covers auth and the snapshot only; it is closed before the receive loop.
    db = SessionLocal()
    try:
        user = resolve_session(db, token)
        if not user or not can(user, Action.APPROVE_ENTRY):
            await ws.close(code=status.WS_1008_POLICY_VIOLATION)
            return
        login = user.login

        await ws.accept()
        unsubscribe = await channel.subscribe(db, forward)
    finally:
        db.close()

    logger.info(f"[NOTIFY] {login} connected to the live feed")
    try:
        while True:
            await ws.receive_text()
    except WebSocketDisconnect:
        logger.info(f"[NOTIFY] {login} left the live feed")
    finally:
        unsubscribe()
