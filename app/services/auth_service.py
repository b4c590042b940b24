# app/services/auth_service.py
"""
Credential checks, password hashing and login sessions.

Passwords are stored as "pbkdf2_sha256$<iterations>$<salt hex>$<hash hex>".
Sessions are opaque random tokens kept in user_sessions until logout; every
lookup re-reads the user row so a removed account loses access immediately.
"""

import hashlib
import hmac
import secrets
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.config import settings
from app.models.user import User
from app.models.user_session import UserSession
from app.utils.logger import get_logger

logger = get_logger(__name__)

_ALGORITHM = "pbkdf2_sha256"


def _derive(password: str, salt_hex: str, iterations: int) -> str:
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), bytes.fromhex(salt_hex), iterations)
    return dk.hex()


def hash_password(password: str, iterations: Optional[int] = None) -> str:
    iterations = iterations or settings.PASSWORD_HASH_ITERATIONS
    salt_hex = secrets.token_hex(16)
    return f"{_ALGORITHM}${iterations}${salt_hex}${_derive(password, salt_hex, iterations)}"


def verify_password(password: str, stored: str) -> bool:
    try:
        algorithm, iterations, salt_hex, expected = stored.split("$")
        if algorithm != _ALGORITHM:
            return False
        return hmac.compare_digest(_derive(password, salt_hex, int(iterations)), expected)
    except (ValueError, AttributeError):
        logger.warning("[AUTH] Malformed password hash encountered")
        return False


def find_user_by_login(db: Session, login: str) -> Optional[User]:
    return db.query(User).filter(func.lower(User.login) == (login or "").strip().lower()).first()


def check_credentials(db: Session, login: str, password: str) -> Optional[User]:
    """Returns the user when login + password match, otherwise None (no hint which one failed)."""
    user = find_user_by_login(db, login)
    if user and verify_password(password, user.password_hash):
        return user
    logger.info(f"[AUTH] Failed login for '{login}'")
    return None


def change_password(db: Session, user_id: str, current_password: str, new_password: str) -> tuple[bool, str]:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        return False, "User not found."
    if not verify_password(current_password, user.password_hash):
        return False, "Current password is incorrect. Check it and try again."
    if current_password == new_password:
        return False, "New password must be different from the current one."

    user.password_hash = hash_password(new_password)
    db.commit()
    logger.info(f"[AUTH] Password changed for {user.login}")
    return True, "Password changed successfully."


def create_session(db: Session, user: User) -> str:
    token = secrets.token_urlsafe(32)
    db.add(UserSession(token=token, user_id=user.id, created_at=datetime.now()))
    db.commit()
    logger.info(f"[AUTH] {user.login} logged in ({user.role})")
    return token


def resolve_session(db: Session, token: Optional[str]) -> Optional[User]:
    """User behind a session token, or None when the token or its user is gone."""
    if not token:
        return None
    session = db.query(UserSession).filter(UserSession.token == token).first()
    if not session:
        return None
    user = db.query(User).filter(User.id == session.user_id).first()
    if not user:
        db.delete(session)
        db.commit()
        return None
    return user


def end_session(db: Session, token: str) -> None:
    """Logout. Unknown tokens are ignored."""
    db.query(UserSession).filter(UserSession.token == token).delete(synchronize_session=False)
    db.commit()
