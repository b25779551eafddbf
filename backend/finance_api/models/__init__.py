"""SQLAlchemy ORM models."""

from finance_api.models.auth_session import AuthSession
from finance_api.models.incoming_fund import IncomingFund
from finance_api.models.outgoing_fund import OutgoingFund
from finance_api.models.audit_log import AuditEntry

__all__ = [
    "AuthSession",
    "IncomingFund",
    "OutgoingFund",
    "AuditEntry",
]
