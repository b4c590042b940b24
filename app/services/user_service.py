# app/services/user_service.py
"""
User administration (admin only). Logins are unique regardless of case.
There is deliberately no delete operation.
"""

import uuid
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.config import settings
from app.models.user import User
from app.services.access_control import Role
from app.services.auth_service import hash_password
from app.services.errors import DuplicateRecordError, RecordNotFoundError
from app.utils.logger import get_logger

logger = get_logger(__name__)


def list_users(db: Session):
    return db.query(User).order_by(User.name).all()


def _login_taken(db: Session, login: str, exclude_id: str = None) -> bool:
    q = db.query(User).filter(func.lower(User.login) == login.strip().lower())
    if exclude_id:
        q = q.filter(User.id != exclude_id)
    return q.first() is not None


def create_user(db: Session, name: str, login: str, password: str, role: str,
                can_view_dashboard: bool = False) -> User:
    if _login_taken(db, login):
        raise DuplicateRecordError("login", f"Login '{login}' is already in use")

    user = User(
        id=f"user{uuid.uuid4().hex[:12]}",
        name=name.strip(),
        login=login.strip(),
        password_hash=hash_password(password),
        role=Role(role).value,
        can_view_dashboard=can_view_dashboard,
        created_at=datetime.now(),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"[USERS] Created {user.login} ({user.role})")
    return user


def update_user(db: Session, user_id: str, name: str, login: str, role: str,
                can_view_dashboard: bool = False, password: str = None) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise RecordNotFoundError("User", user_id)
    if _login_taken(db, login, exclude_id=user_id):
        raise DuplicateRecordError("login", f"Login '{login}' is already in use")

    user.name = name.strip()
    user.login = login.strip()
    user.role = Role(role).value
    user.can_view_dashboard = can_view_dashboard
    if password:
        user.password_hash = hash_password(password)
    db.commit()
    db.refresh(user)
    logger.info(f"[USERS] Updated {user.login} ({user.role})")
    return user


def ensure_admin(db: Session) -> None:
    """Seed the bootstrap admin from settings when no admin account exists."""
    if db.query(User).filter(User.role == Role.ADMIN.value).first():
        return
    create_user(db, settings.ADMIN_NAME, settings.ADMIN_LOGIN, settings.ADMIN_PASSWORD, Role.ADMIN.value,
                can_view_dashboard=True)
    logger.warning(f"[USERS] Bootstrap admin '{settings.ADMIN_LOGIN}' created — change its password")
