"""Report service: public read views of the fund tables."""

import logging
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from finance_api.errors import StorageError
from finance_api.models.incoming_fund import IncomingFund
from finance_api.models.outgoing_fund import OutgoingFund
from finance_api.services.validation import CENTS

logger = logging.getLogger(__name__)


def _money(value) -> float:
    return float(Decimal(str(value or 0)).quantize(CENTS))


def _live_rows(db: Session, model) -> list:
    return (
        db.query(model)
        .filter(model.is_deleted.is_(False))
        .order_by(model.date.desc(), model.created_at.desc())
        .all()
    )


def _totals(db: Session) -> dict:
    total_net_income = (
        db.query(func.coalesce(func.sum(IncomingFund.net_income), 0))
        .filter(IncomingFund.is_deleted.is_(False))
        .scalar()
    )
    total_outgoing = (
        db.query(func.coalesce(func.sum(OutgoingFund.amount), 0))
        .filter(OutgoingFund.is_deleted.is_(False))
        .scalar()
    )
    net = _money(total_net_income)
    out = _money(total_outgoing)
    return {
        "totalNetIncome": net,
        "totalOutgoing": out,
        "currentBalance": _money(Decimal(str(net)) - Decimal(str(out))),
    }


def incoming_report(db: Session) -> dict:
    """Live incoming records, newest first, with the net-income total."""
    try:
        rows = _live_rows(db, IncomingFund)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error fetching incoming funds")
        raise StorageError("Failed to fetch incoming funds data")
    return {
        "data": [r.to_dict() for r in rows],
        "summary": {
            "total": _money(sum((r.net_income for r in rows), Decimal(0))),
            "count": len(rows),
        },
    }


def outgoing_report(db: Session) -> dict:
    """Live outgoing records, newest first, with the spend total."""
    try:
        rows = _live_rows(db, OutgoingFund)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error fetching outgoing funds")
        raise StorageError("Failed to fetch outgoing funds data")
    return {
        "data": [r.to_dict() for r in rows],
        "summary": {
            "total": _money(sum((r.amount for r in rows), Decimal(0))),
            "count": len(rows),
        },
    }


def financial_summary(db: Session) -> dict:
    try:
        return _totals(db)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error fetching summary")
        raise StorageError("Failed to fetch financial summary")


def all_data(db: Session) -> dict:
    """Incoming, outgoing and summary in one payload for the transparency page."""
    try:
        incoming = _live_rows(db, IncomingFund)
        outgoing = _live_rows(db, OutgoingFund)
        summary = _totals(db)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error fetching all data")
        raise StorageError("Failed to fetch financial data")
    return {
        "incoming": {
            "data": [r.to_dict() for r in incoming],
            "total": _money(sum((r.net_income for r in incoming), Decimal(0))),
        },
        "outgoing": {
            "data": [r.to_dict() for r in outgoing],
            "total": _money(sum((r.amount for r in outgoing), Decimal(0))),
        },
        "summary": summary,
    }
