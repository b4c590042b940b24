# app/routers/auth.py
"""
Login, logout and what the signed-in user may see.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import User
from app.schemas.auth import (
    ChangePasswordOut, ChangePasswordRequest, LoginOut, LoginRequest, PageResolutionOut, SessionOut,
)
from app.schemas.user import UserOut
from app.security import get_current_user, require_action, token_from_request
from app.services import access_control
from app.services.access_control import Action
from app.services.auth_service import change_password, check_credentials, create_session, end_session

router = APIRouter()


@router.post("/auth/login", response_model=LoginOut, summary="Sign in")
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = check_credentials(db, body.login, body.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    token = create_session(db, user)
    return LoginOut(token=token, user=UserOut.model_validate(user), landing_page=access_control.landing_page(user))


@router.post("/auth/logout", status_code=status.HTTP_204_NO_CONTENT, summary="Sign out")
def logout(request: Request, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    end_session(db, token_from_request(request))


@router.get("/auth/me", response_model=SessionOut, summary="Current user, actions and pages")
def me(user: User = Depends(get_current_user)):
    return SessionOut(
        user=UserOut.model_validate(user),
        actions=sorted(a.value for a in access_control.allowed_actions(user)),
        pages=access_control.allowed_pages(user),
        landing_page=access_control.landing_page(user),
    )


@router.get("/auth/pages/{page}", response_model=PageResolutionOut, summary="Where a page request should land")
def resolve_page(page: str, user: User = Depends(get_current_user)):
    resolved = access_control.resolve_page(user, page)
    return PageResolutionOut(requested=page, page=resolved, redirected=resolved != page)


@router.post("/auth/change-password", response_model=ChangePasswordOut, summary="Change own password")
def change_own_password(body: ChangePasswordRequest, db: Session = Depends(get_db),
                        user: User = Depends(require_action(Action.CHANGE_PASSWORD))):
    ok, message = change_password(db, user.id, body.current_password, body.new_password)
    if not ok:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)
    return ChangePasswordOut(success=True, message=message)
