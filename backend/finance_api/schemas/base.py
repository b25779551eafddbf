"""Shared schema plumbing: camelCase aliases and one-shot request decoding."""

from typing import Any, Literal

from pydantic import BaseModel, TypeAdapter, ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from finance_api.errors import BadRequest

FundKind = Literal["incoming", "outgoing"]


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire (``sessionToken``, ``userName``)."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


def decode_action(adapter: TypeAdapter, body: dict, supported: tuple[str, ...]) -> Any:
    """Decode a JSON body into one variant of a discriminated union on ``action``.

    Raises:
        BadRequest: unknown action, or the variant's fields do not validate.
    """
    action = body.get("action")
    if action not in supported:
        raise BadRequest(f"Invalid action. Supported actions: {', '.join(supported)}")
    try:
        return adapter.validate_python(body)
    except PydanticValidationError as e:
        problems = []
        for err in e.errors():
            where = ".".join(str(p) for p in err["loc"][1:]) or "body"
            problems.append(f"{where}: {err['msg']}")
        raise BadRequest("; ".join(problems))
