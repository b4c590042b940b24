# app/security.py
"""
FastAPI dependencies for authentication and capability checks.

Clients send the session token from /auth/login as
    Authorization: Bearer <token>     (or X-Session-Token: <token>)
Routers declare what they need with Depends(require_action(Action.X)).
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import User
from app.services.access_control import Action, can
from app.services.auth_service import resolve_session


def token_from_request(request: Request) -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:].strip()
    return request.headers.get("X-Session-Token")


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    user = resolve_session(db, token_from_request(request))
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user


def require_action(action: Action):
    """Dependency factory: 403 unless the current user's role grants `action`."""

    def checker(user: User = Depends(get_current_user)) -> User:
        if not can(user, action):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Not allowed: {action.value}")
        return user

    return checker
