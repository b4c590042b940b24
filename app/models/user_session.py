# app/models/user_session.py
"""Login sessions. A token stays valid until logout or until its user disappears."""

from sqlalchemy import Column, String, DateTime
from app.database import Base


class UserSession(Base):
    __tablename__ = "user_sessions"

    token = Column(String(64), primary_key=True)
    user_id = Column(String(40), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<UserSession user={self.user_id}>"
