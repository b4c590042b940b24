# app/routers/users.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import User
from app.schemas.user import UserCreate, UserOut, UserUpdate
from app.security import require_action
from app.services import user_service
from app.services.access_control import Action

router = APIRouter()

_admin = require_action(Action.MANAGE_USERS)


@router.get("/users", response_model=list[UserOut], summary="All user accounts")
def list_users(db: Session = Depends(get_db), user: User = Depends(_admin)):
    return user_service.list_users(db)


@router.post("/users", response_model=UserOut, status_code=status.HTTP_201_CREATED, summary="Create an account")
def create_user(body: UserCreate, db: Session = Depends(get_db), user: User = Depends(_admin)):
    return user_service.create_user(db, body.name, body.login, body.password, body.role, body.can_view_dashboard)


@router.put("/users/{user_id}", response_model=UserOut, summary="Edit an account")
def update_user(user_id: str, body: UserUpdate, db: Session = Depends(get_db), user: User = Depends(_admin)):
    """Leave password empty to keep the current one."""
    return user_service.update_user(db, user_id, body.name, body.login, body.role,
                                    body.can_view_dashboard, password=body.password)
