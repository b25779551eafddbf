"""Recovery service for the deleted-records admin: list, restore and permanent delete."""

import json
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from finance_api import clock
from finance_api.errors import NotFound, StorageError
from finance_api.lifecycle import RecordAction, source_state, state_of, transition
from finance_api.models.audit_log import AuditEntry
from finance_api.services.fund_service import explain_miss, in_state, model_for

logger = logging.getLogger(__name__)

AUDIT_DELETE = "DELETE"


def list_deleted(db: Session, kind: str) -> list:
    """Soft-deleted records, most recently deleted first."""
    model = model_for(kind)
    try:
        return (
            db.query(model)
            .filter(model.is_deleted.is_(True))
            .order_by(model.deleted_at.desc())
            .all()
        )
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error fetching deleted %s records", kind)
        raise StorageError("Failed to fetch deleted records")


def restore_record(db: Session, kind: str, record_id: str, acting_user: str):
    """Bring a soft-deleted record back to the live table view."""
    model = model_for(kind)
    try:
        matched = (
            db.query(model)
            .filter(model.id == record_id, in_state(model, source_state(RecordAction.RESTORE)))
            .update(
                {
                    "is_deleted": False,
                    "deleted_at": None,
                    "deleted_by": None,
                    "updated_by": acting_user,
                    "updated_at": clock.utcnow(),
                },
                synchronize_session=False,
            )
        )
        if not matched:
            db.rollback()
            explain_miss(db, model, record_id, RecordAction.RESTORE)
        db.commit()
        db.expire_all()
        record = db.query(model).filter(model.id == record_id).one()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error restoring %s record %s", kind, record_id)
        raise StorageError("Failed to restore record")

    logger.info("%s restored %s record %s", acting_user, kind, record_id)
    return record


def hard_delete_record(db: Session, kind: str, record_id: str, acting_user: str) -> dict:
    """Permanently remove a soft-deleted record and append one audit entry.

    Irreversible. A live record is refused before anything is written; the
    delete itself is again conditioned on ``is_deleted`` so a concurrent
    restore cannot be lost. The delete and the audit entry commit together.

    Returns:
        The pre-delete snapshot of the record.
    """
    model = model_for(kind)
    table_name = model.__tablename__
    try:
        record = db.query(model).filter(model.id == record_id).first()
        if record is None:
            raise NotFound()
        transition(state_of(record), RecordAction.HARD_DELETE)

        snapshot = record.to_dict()
        logger.warning("HARD DELETE attempt on %s %s by %s", table_name, record_id, acting_user)

        removed = (
            db.query(model)
            .filter(model.id == record_id, in_state(model, source_state(RecordAction.HARD_DELETE)))
            .delete(synchronize_session=False)
        )
        if not removed:
            db.rollback()
            explain_miss(db, model, record_id, RecordAction.HARD_DELETE)

        db.add(AuditEntry(
            table_name=table_name,
            record_id=record_id,
            action=AUDIT_DELETE,
            changed_by=acting_user,
            old_values=json.dumps(snapshot),
            new_values=None,
            timestamp=clock.utcnow(),
        ))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error in hard delete of %s %s", table_name, record_id)
        raise StorageError("Failed to permanently delete record")

    logger.warning("Permanently deleted %s %s", table_name, record_id)
    return snapshot
