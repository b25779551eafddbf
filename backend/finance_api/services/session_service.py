"""Session service: login, session validation, logout and expiry sweeps."""

import logging
import secrets
from datetime import timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from finance_api import clock
from finance_api.config import settings
from finance_api.errors import AuthError, BadRequest, RateLimited, StorageError
from finance_api.models.auth_session import AuthSession

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32  # 64 hex characters


def generate_session_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def login(
    db: Session,
    user_name: Optional[str],
    password: Optional[str],
    client_id: Optional[str],
    rate_limiter,
    user_agent: Optional[str] = None,
) -> AuthSession:
    """Authenticate one of the allow-listed approvers and open a session.

    Order of checks: required fields, allow-list, rate limit, password. The
    rate limit is charged before the password is compared, so a sixth attempt
    inside the window is refused even with the right password.
    """
    if not user_name or not password:
        raise BadRequest("userName and password are required")

    if user_name not in settings.VALID_USERS:
        raise BadRequest("Invalid user name")

    if not rate_limiter.check_and_record(client_id or "unknown"):
        logger.warning("Login rate limit hit for client %s", client_id)
        raise RateLimited()

    if not secrets.compare_digest(password.encode("utf-8"), settings.FINANCE_EDIT_PASSWORD.encode("utf-8")):
        raise AuthError("Invalid password")

    now = clock.utcnow()
    session = AuthSession(
        session_token=generate_session_token(),
        user_name=user_name,
        created_at=now,
        expires_at=now + timedelta(hours=settings.SESSION_DURATION_HOURS),
        last_activity=now,
        ip_address=client_id,
        user_agent=user_agent[:512] if user_agent else None,
    )
    try:
        db.add(session)
        db.commit()
        db.refresh(session)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Database error during login for %s", user_name)
        raise StorageError("Failed to create session")

    logger.info("Session opened for %s", user_name)
    return session


def validate_session(db: Session, token: Optional[str]) -> AuthSession:
    """Resolve a bearer token to its live session.

    Refreshes ``last_activity`` on success. ``expires_at`` is never moved.
    """
    if not token:
        raise AuthError("Session token is required")

    now = clock.utcnow()
    try:
        session = (
            db.query(AuthSession)
            .filter(AuthSession.session_token == token, AuthSession.expires_at > now)
            .first()
        )
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Database error during session validation")
        raise StorageError("Failed to validate session")

    if not session:
        raise AuthError("Invalid or expired session")

    # Activity tracking is best-effort; a failed write must not reject a valid session.
    try:
        session.last_activity = now
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.warning("Could not refresh last_activity for session of %s", session.user_name, exc_info=True)

    return session


def logout(db: Session, token: Optional[str]) -> None:
    """Delete the session for ``token``. Unknown tokens are not an error."""
    if not token:
        raise BadRequest("sessionToken is required")
    try:
        db.query(AuthSession).filter(AuthSession.session_token == token).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Database error during logout")
        raise StorageError("Failed to logout")


def sweep_expired_sessions(bind) -> int:
    """Remove expired sessions. Runs as a background task after login.

    Opens its own session on ``bind`` because the request session is closed by
    the time background tasks run. Failures are logged, never raised.
    """
    db = Session(bind=bind)
    try:
        removed = (
            db.query(AuthSession)
            .filter(AuthSession.expires_at < clock.utcnow())
            .delete(synchronize_session=False)
        )
        db.commit()
        if removed:
            logger.info("Swept %d expired session(s)", removed)
        return removed
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error cleaning up sessions")
        return 0
    finally:
        db.close()
