"""Mutate router: create, update, soft delete and batch create fund records."""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from finance_api.database import get_db
from finance_api.middleware.auth import get_json_body, require_session
from finance_api.models.auth_session import AuthSession
from finance_api.schemas.base import decode_action
from finance_api.schemas.funds import (
    MUTATE_ACTIONS,
    BatchRequest,
    BatchResponse,
    CreateRequest,
    DeleteRequest,
    MutateRequest,
    RecordResponse,
    UpdateRequest,
)
from finance_api.services import fund_service

router = APIRouter(prefix="/api/finance-mutate", tags=["mutate"])

_DEFAULT_ACTIONS = {"POST": "create", "PUT": "update", "DELETE": "delete"}


@router.options("")
def preflight():
    return Response(status_code=204)


@router.api_route("", methods=["POST", "PUT", "DELETE"])
def mutate(
    request: Request,
    response: Response,
    body: dict = Depends(get_json_body),
    session: AuthSession = Depends(require_session),
    db: Session = Depends(get_db),
):
    """Apply one mutation as the session's user.

    ``action`` defaults from the HTTP method: POST creates, PUT updates and
    DELETE soft-deletes.
    """
    body.setdefault("action", _DEFAULT_ACTIONS[request.method])
    req = decode_action(MutateRequest, body, MUTATE_ACTIONS)
    user = session.user_name

    if isinstance(req, CreateRequest):
        record = fund_service.create_record(db, req.type, req.data, user)
        response.status_code = 201
        return RecordResponse(id=record.id, record=record.to_dict())

    if isinstance(req, UpdateRequest):
        record = fund_service.update_record(
            db, req.type, req.id, req.data, user, expected_updated_at=req.expected_updated_at
        )
        return RecordResponse(id=record.id, record=record.to_dict())

    if isinstance(req, DeleteRequest):
        record = fund_service.soft_delete_record(db, req.type, req.id, user)
        return RecordResponse(id=record.id, record=record.to_dict())

    result = fund_service.batch_create(db, req.type, req.operations, user)
    return BatchResponse(processed=result.processed, errors=result.errors)
