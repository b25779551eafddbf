"""Data router: public, cacheable views of the transparency spreadsheet."""

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.orm import Session

from finance_api.config import settings
from finance_api.database import get_db
from finance_api.errors import BadRequest
from finance_api.middleware.rate_limit import limiter
from finance_api.services import report_service

router = APIRouter(prefix="/api/finance-data", tags=["data"])

_VIEWS = {
    "incoming": report_service.incoming_report,
    "outgoing": report_service.outgoing_report,
    "summary": report_service.financial_summary,
    "all": report_service.all_data,
}


@router.options("")
def preflight():
    return Response(status_code=204)


@router.get("")
@limiter.limit(settings.READ_RATE_LIMIT)
def read_data(
    request: Request,
    response: Response,
    type: str = Query("all"),
    db: Session = Depends(get_db),
):
    """Fetch incoming, outgoing, summary or all data (no session needed)."""
    view = _VIEWS.get(type.lower())
    if view is None:
        raise BadRequest("Invalid type parameter. Supported types: incoming, outgoing, summary, all")

    response.headers["Cache-Control"] = f"public, max-age={settings.READ_CACHE_MAX_AGE}"
    return {"success": True, **view(db)}
