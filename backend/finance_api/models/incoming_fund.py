"""Incoming funds: donations and other money received."""

from sqlalchemy import Column, String, Numeric, Text

from finance_api.database import Base
from finance_api.models.mixins import FundRecordMixin


class IncomingFund(FundRecordMixin, Base):
    __tablename__ = "incoming_funds"

    CONTENT_FIELDS = ("date", "amount", "source", "donor_initials", "purpose_note", "approved_by")

    source = Column(String(50), nullable=False)  # GoFundMe | Stripe | Bank Transfer | Check | Cash | Other
    donor_initials = Column(String(20), nullable=True)
    purpose_note = Column(Text, nullable=True)
    net_income = Column(Numeric(12, 2), nullable=False)  # derived from amount and source
