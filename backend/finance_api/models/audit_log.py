"""Audit trail model: append-only record of every destructive action."""

import uuid

from sqlalchemy import Column, String, DateTime, Text

from finance_api import clock
from finance_api.database import Base


class AuditEntry(Base):
    __tablename__ = "audit_trail"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    table_name = Column(String(50), nullable=False)  # incoming_funds | outgoing_funds
    record_id = Column(String(36), nullable=False, index=True)
    action = Column(String(20), nullable=False)  # DELETE
    changed_by = Column(String(100), nullable=False)
    old_values = Column(Text, nullable=True)   # JSON string
    new_values = Column(Text, nullable=True)   # JSON string
    timestamp = Column(DateTime, nullable=False, default=clock.utcnow)
