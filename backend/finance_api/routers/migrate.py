"""Migrate router: one-off import of legacy spreadsheet rows."""

from fastapi import APIRouter, Depends, Response
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from finance_api.database import get_db
from finance_api.errors import BadRequest
from finance_api.middleware.auth import get_json_body, require_session
from finance_api.models.auth_session import AuthSession
from finance_api.schemas.funds import MigrateRequest, MigrateResponse
from finance_api.services import migration_service

router = APIRouter(prefix="/api/finance-migrate", tags=["migrate"])

_USAGE = "At least one of incomingData or outgoingData must be provided as an array"


@router.options("")
def preflight():
    return Response(status_code=204)


@router.post("", response_model=MigrateResponse)
def migrate(
    body: dict = Depends(get_json_body),
    session: AuthSession = Depends(require_session),
    db: Session = Depends(get_db),
):
    """Import ``incomingData`` and/or ``outgoingData`` row arrays."""
    try:
        req = MigrateRequest.model_validate(body)
    except PydanticValidationError:
        raise BadRequest(_USAGE)
    if req.incoming_data is None and req.outgoing_data is None:
        raise BadRequest(_USAGE)

    result = migration_service.migrate(db, req.incoming_data, req.outgoing_data, session.user_name)
    return MigrateResponse(
        incoming_processed=result.incoming_processed,
        outgoing_processed=result.outgoing_processed,
        errors=result.errors,
        message=(
            f"Migration completed. Processed {result.incoming_processed} incoming "
            f"and {result.outgoing_processed} outgoing records."
        ),
    )
