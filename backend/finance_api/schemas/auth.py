"""Auth request/response schemas."""

from typing import Annotated, Literal, Optional, Union

from pydantic import Field, TypeAdapter

from finance_api.schemas.base import CamelModel

AUTH_ACTIONS = ("login", "validate", "logout")


class LoginRequest(CamelModel):
    action: Literal["login"]
    user_name: Optional[str] = None
    password: Optional[str] = None


class ValidateRequest(CamelModel):
    action: Literal["validate"]
    session_token: Optional[str] = None


class LogoutRequest(CamelModel):
    action: Literal["logout"]
    session_token: Optional[str] = None


AuthRequest = TypeAdapter(
    Annotated[Union[LoginRequest, ValidateRequest, LogoutRequest], Field(discriminator="action")]
)


class LoginResponse(CamelModel):
    success: bool = True
    session_token: str
    user_name: str
    expires_at: str


class ValidateResponse(CamelModel):
    valid: bool
    user_name: Optional[str] = None
    expires_at: Optional[str] = None
    error: Optional[str] = None


class SuccessResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
