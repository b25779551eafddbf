"""Auth router: login, session validation and logout for the finance editors."""

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from finance_api import clock
from finance_api.database import get_db
from finance_api.errors import AuthError
from finance_api.middleware.auth import client_id, get_json_body
from finance_api.middleware.rate_limit import LoginRateLimiter, get_login_rate_limiter
from finance_api.schemas.auth import (
    AUTH_ACTIONS,
    AuthRequest,
    LoginRequest,
    LoginResponse,
    LogoutRequest,
    SuccessResponse,
    ValidateResponse,
)
from finance_api.schemas.base import decode_action
from finance_api.services import session_service

router = APIRouter(prefix="/api/finance-auth", tags=["auth"])


@router.options("")
def preflight():
    return Response(status_code=204)


@router.post("")
def authenticate(
    request: Request,
    background_tasks: BackgroundTasks,
    body: dict = Depends(get_json_body),
    db: Session = Depends(get_db),
    rate_limiter: LoginRateLimiter = Depends(get_login_rate_limiter),
):
    """Login, validate or logout. Without ``action``, a body carrying
    userName and password is a login and anything else a validation."""
    if "action" not in body:
        body["action"] = "login" if body.get("userName") and body.get("password") else "validate"
    req = decode_action(AuthRequest, body, AUTH_ACTIONS)

    if isinstance(req, LoginRequest):
        session = session_service.login(
            db,
            req.user_name,
            req.password,
            client_id(request),
            rate_limiter,
            user_agent=request.headers.get("user-agent"),
        )
        background_tasks.add_task(session_service.sweep_expired_sessions, db.get_bind())
        return LoginResponse(
            session_token=session.session_token,
            user_name=session.user_name,
            expires_at=clock.isoformat(session.expires_at),
        )

    if isinstance(req, LogoutRequest):
        session_service.logout(db, req.session_token)
        return SuccessResponse()

    if not req.session_token:
        return JSONResponse(status_code=400, content={"valid": False, "error": "sessionToken is required"})
    try:
        session = session_service.validate_session(db, req.session_token)
    except AuthError as e:
        return ValidateResponse(valid=False, error=e.message)
    return ValidateResponse(
        valid=True,
        user_name=session.user_name,
        expires_at=clock.isoformat(session.expires_at),
    )
