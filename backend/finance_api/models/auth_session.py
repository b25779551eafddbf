"""Auth session model: one row per successful login."""

import uuid

from sqlalchemy import Column, String, DateTime

from finance_api import clock
from finance_api.database import Base


class AuthSession(Base):
    __tablename__ = "auth_sessions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    session_token = Column(String(64), unique=True, nullable=False, index=True)
    user_name = Column(String(100), nullable=False)
    created_at = Column(DateTime, nullable=False, default=clock.utcnow)
    expires_at = Column(DateTime, nullable=False, index=True)  # created_at + SESSION_DURATION_HOURS, never extended
    last_activity = Column(DateTime, nullable=False, default=clock.utcnow)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)
