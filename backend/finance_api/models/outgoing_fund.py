"""Outgoing funds: money spent by the foundation."""

from sqlalchemy import Column, String, Text

from finance_api.database import Base
from finance_api.models.mixins import FundRecordMixin


class OutgoingFund(FundRecordMixin, Base):
    __tablename__ = "outgoing_funds"

    CONTENT_FIELDS = ("date", "amount", "recipient", "purpose", "category", "approved_by")

    recipient = Column(String(255), nullable=False)
    purpose = Column(Text, nullable=False)
    category = Column(String(50), nullable=False)  # Education | Operations | Marketing | Infrastructure | Salaries | Other
