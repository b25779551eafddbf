"""Request body and session-token dependencies."""

import json
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from finance_api.database import get_db
from finance_api.errors import BadRequest
from finance_api.models.auth_session import AuthSession
from finance_api.services import session_service


async def get_json_body(request: Request) -> dict:
    """Parse the request body as a JSON object. An empty body is ``{}``."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise BadRequest("Invalid JSON body")
    if not isinstance(body, dict):
        raise BadRequest("Invalid JSON body")
    return body


def bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return None


def client_id(request: Request) -> str:
    """Identify the caller for rate limiting: proxy headers first, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded and forwarded.split(",")[0].strip():
        return forwarded.split(",")[0].strip()
    client_ip = request.headers.get("client-ip")
    if client_ip:
        return client_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def require_session(
    request: Request,
    body: dict = Depends(get_json_body),
    db: Session = Depends(get_db),
) -> AuthSession:
    """Gate for every mutating endpoint: resolve ``sessionToken`` to a live session.

    The token is read from the JSON body, falling back to ``Authorization: Bearer``.
    """
    token = body.get("sessionToken") or bearer_token(request)
    return session_service.validate_session(db, token)
