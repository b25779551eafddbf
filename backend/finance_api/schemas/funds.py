"""Fund mutation and recovery request/response schemas."""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import Field, TypeAdapter

from finance_api.schemas.base import CamelModel, FundKind

MUTATE_ACTIONS = ("create", "update", "delete", "batch")
RECOVER_ACTIONS = ("list", "restore", "hard-delete")


# ── Mutations ────────────────────────────────────────────────────────────────

class CreateRequest(CamelModel):
    action: Literal["create"]
    type: FundKind
    data: dict


class UpdateRequest(CamelModel):
    action: Literal["update"]
    type: FundKind
    id: str
    data: dict
    expected_updated_at: Optional[datetime] = None


class DeleteRequest(CamelModel):
    action: Literal["delete"]
    type: FundKind
    id: str


class BatchRequest(CamelModel):
    action: Literal["batch"]
    type: FundKind
    operations: list


MutateRequest = TypeAdapter(
    Annotated[
        Union[CreateRequest, UpdateRequest, DeleteRequest, BatchRequest],
        Field(discriminator="action"),
    ]
)


# ── Recovery ─────────────────────────────────────────────────────────────────

class ListDeletedRequest(CamelModel):
    action: Literal["list"]
    type: FundKind


class RestoreRequest(CamelModel):
    action: Literal["restore"]
    type: FundKind
    id: str


class HardDeleteRequest(CamelModel):
    action: Literal["hard-delete"]
    type: FundKind
    id: str


RecoverRequest = TypeAdapter(
    Annotated[
        Union[ListDeletedRequest, RestoreRequest, HardDeleteRequest],
        Field(discriminator="action"),
    ]
)


# ── Migration ────────────────────────────────────────────────────────────────

class MigrateRequest(CamelModel):
    incoming_data: Optional[list] = None
    outgoing_data: Optional[list] = None


# ── Responses ────────────────────────────────────────────────────────────────

class RecordResponse(CamelModel):
    success: bool = True
    id: Optional[str] = None
    message: Optional[str] = None
    record: dict


class BatchResponse(CamelModel):
    success: bool = True
    processed: int
    errors: list[dict]


class DeletedListResponse(CamelModel):
    success: bool = True
    data: list[dict]
    count: int


class HardDeleteResponse(CamelModel):
    success: bool = True
    message: str = "Record permanently deleted"
    deleted_record: dict


class MigrateResponse(CamelModel):
    success: bool = True
    incoming_processed: int
    outgoing_processed: int
    errors: list[str]
    message: str
