"""Fund service: create, update, soft delete and batch import of fund records."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from finance_api import clock
from finance_api.errors import Conflict, NotFound, StorageError, ValidationError
from finance_api.lifecycle import RecordAction, RecordState, source_state, state_of, transition
from finance_api.models.incoming_fund import IncomingFund
from finance_api.models.outgoing_fund import OutgoingFund
from finance_api.services import validation

logger = logging.getLogger(__name__)

MODELS = {
    "incoming": IncomingFund,
    "outgoing": OutgoingFund,
}


def model_for(kind: str):
    """Map a record type ("incoming" | "outgoing") to its ORM model."""
    try:
        return MODELS[kind]
    except KeyError:
        raise ValueError(f"Unknown record type {kind!r}")


def in_state(model, state: RecordState):
    """SQL criterion selecting rows of ``model`` that are in ``state``."""
    return model.is_deleted.is_(state is RecordState.SOFT_DELETED)


def content_values(kind: str, data: dict) -> dict:
    """Normalize a validated payload into column values.

    Only the model's content columns are read; keys absent from ``data`` are
    left out so an update does not blank them. ``net_income`` is always derived.
    """
    model = model_for(kind)
    values = {}
    for name in model.CONTENT_FIELDS:
        if name not in data:
            continue
        value = data[name]
        if isinstance(value, str):
            value = value.strip() or None
        values[name] = value

    values["date"] = validation.parse_iso_date(data["date"])
    values["amount"] = validation.to_cents(validation.parse_amount(data["amount"]))
    if model is IncomingFund:
        values["net_income"] = validation.net_income(values["amount"], values["source"])
    return values


def _require_valid(kind: str, data) -> None:
    errors = validation.validate(kind, data)
    if errors:
        raise ValidationError(errors)


def insert_record(db: Session, kind: str, data: dict, acting_user: str):
    """Insert an already-validated payload and commit it on its own."""
    model = model_for(kind)
    now = clock.utcnow()
    record = model(
        **content_values(kind, data),
        created_by=acting_user,
        updated_by=acting_user,
        created_at=now,
        updated_at=now,
    )
    try:
        db.add(record)
        db.commit()
        db.refresh(record)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error creating %s record for %s", kind, acting_user)
        raise StorageError("Failed to create record")
    return record


def create_record(db: Session, kind: str, data: dict, acting_user: str):
    """Validate and persist a new record attributed to ``acting_user``."""
    _require_valid(kind, data)
    record = insert_record(db, kind, data, acting_user)
    logger.info("%s created %s record %s", acting_user, kind, record.id)
    return record


def explain_miss(db: Session, model, record_id: str, action: RecordAction):
    """A conditional write matched nothing: find out why and raise.

    NotFound when the row is gone, the lifecycle error when the record is in
    the wrong state, otherwise Conflict with the current copy.
    """
    current = db.query(model).filter(model.id == record_id).first()
    if current is None:
        raise NotFound()
    transition(state_of(current), action)
    raise Conflict(current.to_dict())


def update_record(
    db: Session,
    kind: str,
    record_id: str,
    data: dict,
    acting_user: str,
    expected_updated_at: Optional[datetime] = None,
):
    """Replace a record's content, optionally guarded by optimistic locking.

    The guard is part of the UPDATE itself (``WHERE updated_at = :expected``),
    so no other write can slip between the check and the write. When nothing
    matches, the record is re-read to tell NotFound, a deleted record and a
    Conflict apart; a Conflict carries the current server copy.
    """
    _require_valid(kind, data)
    model = model_for(kind)

    values = content_values(kind, data)
    values["updated_by"] = acting_user
    values["updated_at"] = clock.utcnow()

    query = db.query(model).filter(
        model.id == record_id,
        in_state(model, source_state(RecordAction.UPDATE)),
    )
    expected = clock.to_naive_utc(expected_updated_at)
    if expected is not None:
        query = query.filter(model.updated_at == expected)

    try:
        matched = query.update(values, synchronize_session=False)
        if not matched:
            db.rollback()
            logger.info("Update of %s record %s by %s matched nothing", kind, record_id, acting_user)
            explain_miss(db, model, record_id, RecordAction.UPDATE)
        db.commit()
        db.expire_all()
        return db.query(model).filter(model.id == record_id).one()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error updating %s record %s", kind, record_id)
        raise StorageError("Failed to update record")


def soft_delete_record(db: Session, kind: str, record_id: str, acting_user: str):
    """Flag a record as deleted. The row stays recoverable."""
    model = model_for(kind)
    try:
        matched = (
            db.query(model)
            .filter(model.id == record_id, in_state(model, source_state(RecordAction.SOFT_DELETE)))
            .update(
                {"is_deleted": True, "deleted_at": clock.utcnow(), "deleted_by": acting_user},
                synchronize_session=False,
            )
        )
        if not matched:
            db.rollback()
            explain_miss(db, model, record_id, RecordAction.SOFT_DELETE)
        db.commit()
        db.expire_all()
        record = db.query(model).filter(model.id == record_id).one()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error soft deleting %s record %s", kind, record_id)
        raise StorageError("Failed to delete record")

    logger.info("%s soft deleted %s record %s", acting_user, kind, record_id)
    return record


@dataclass
class BatchResult:
    processed: int = 0
    errors: list[dict] = field(default_factory=list)


def batch_create(db: Session, kind: str, operations: list, acting_user: str) -> BatchResult:
    """Create records one by one; failures are reported per index, never fatal.

    Each item is committed on its own, so earlier items stay persisted when a
    later one fails.
    """
    result = BatchResult()
    for index, item in enumerate(operations):
        errors = validation.validate(kind, item)
        if errors:
            result.errors.append({"index": index, "errors": [str(e) for e in errors]})
            continue
        try:
            insert_record(db, kind, item, acting_user)
        except StorageError as e:
            result.errors.append({"index": index, "error": e.message})
            continue
        result.processed += 1

    logger.info(
        "%s batch created %d/%d %s record(s)", acting_user, result.processed, len(operations), kind
    )
    return result
