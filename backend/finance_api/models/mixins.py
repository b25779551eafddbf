"""Columns shared by the incoming and outgoing fund tables."""

import uuid
from decimal import Decimal

from sqlalchemy import Column, String, Date, DateTime, Numeric, Boolean

from finance_api import clock


class FundRecordMixin:
    """Common shape of a fund record: content, attribution and soft-delete flags.

    Subclasses list their editable columns in ``CONTENT_FIELDS``; nothing else
    is ever copied from a client payload.
    """

    CONTENT_FIELDS: tuple[str, ...] = ()

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    date = Column(Date, nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    approved_by = Column(String(100), nullable=False)

    is_deleted = Column(Boolean, nullable=False, default=False, index=True)
    deleted_at = Column(DateTime, nullable=True)
    deleted_by = Column(String(100), nullable=True)

    created_by = Column(String(100), nullable=False)
    updated_by = Column(String(100), nullable=False)
    created_at = Column(DateTime, nullable=False, default=clock.utcnow)
    updated_at = Column(DateTime, nullable=False, default=clock.utcnow)

    def to_dict(self) -> dict:
        """JSON-ready snapshot of every column."""
        out = {}
        for column in self.__table__.columns:
            value = getattr(self, column.name)
            if isinstance(value, Decimal):
                value = float(value)
            elif hasattr(value, "isoformat"):
                value = value.isoformat()
            out[column.name] = value
        return out
