# app/models/user.py
"""
Operator accounts. Login is unique (case-insensitive, enforced in user_service).
Passwords are stored only as salted PBKDF2 hashes, never in plain form.
"""

from sqlalchemy import Column, String, DateTime, Boolean
from app.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(40), primary_key=True)
    name = Column(String(200), nullable=False)
    login = Column(String(100), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False)   # admin | user | gate_agent | exit_agent
    can_view_dashboard = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime)

    def __repr__(self):
        return f"<User {self.login} role={self.role}>"
