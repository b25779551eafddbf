"""Recover router for the deleted-records admin view: list, restore, hard delete."""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from finance_api.database import get_db
from finance_api.middleware.auth import get_json_body, require_session
from finance_api.models.auth_session import AuthSession
from finance_api.schemas.base import decode_action
from finance_api.schemas.funds import (
    RECOVER_ACTIONS,
    DeletedListResponse,
    HardDeleteResponse,
    ListDeletedRequest,
    RecordResponse,
    RecoverRequest,
    RestoreRequest,
)
from finance_api.services import recovery_service

router = APIRouter(prefix="/api/finance-hard-delete", tags=["recover"])


@router.options("")
def preflight():
    return Response(status_code=204)


@router.api_route("", methods=["POST", "DELETE"])
def recover(
    body: dict = Depends(get_json_body),
    session: AuthSession = Depends(require_session),
    db: Session = Depends(get_db),
):
    """List soft-deleted records, restore one, or permanently delete one."""
    req = decode_action(RecoverRequest, body, RECOVER_ACTIONS)
    user = session.user_name

    if isinstance(req, ListDeletedRequest):
        records = recovery_service.list_deleted(db, req.type)
        return DeletedListResponse(data=[r.to_dict() for r in records], count=len(records))

    if isinstance(req, RestoreRequest):
        record = recovery_service.restore_record(db, req.type, req.id, user)
        return RecordResponse(id=record.id, message="Record restored", record=record.to_dict())

    snapshot = recovery_service.hard_delete_record(db, req.type, req.id, user)
    return HardDeleteResponse(deleted_record=snapshot)
