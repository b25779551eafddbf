"""Record validation for incoming and outgoing funds.

Pure and synchronous: no database, no clock. Each validator returns every
violation it finds so the spreadsheet can highlight all problems at once.
An empty list means the record is valid.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

from finance_api.config import settings

VALID_SOURCES = ["GoFundMe", "Stripe", "Bank Transfer", "Check", "Cash", "Other"]
VALID_CATEGORIES = ["Education", "Operations", "Marketing", "Infrastructure", "Salaries", "Other"]

FEE_SOURCE = "GoFundMe"
CENTS = Decimal("0.01")
# Numeric(12, 2) columns hold at most 10 integer digits.
MAX_AMOUNT = Decimal("1e10")


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def __str__(self) -> str:
        return self.message

    def as_dict(self) -> dict:
        return {"field": self.field, "message": self.message}


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_amount(value: Any) -> Optional[Decimal]:
    """Parse a JSON amount (number or numeric string). None when not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount


def parse_iso_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def to_cents(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)


def net_income(amount: Decimal, source: str) -> Decimal:
    """Amount after the provider fee. Only GoFundMe donations carry a fee."""
    amount = Decimal(amount)
    if source == FEE_SOURCE:
        fee_rate = Decimal(str(settings.GOFUNDME_FEE_RATE))
        return to_cents(amount * (Decimal(1) - fee_rate))
    return to_cents(amount)


def _common(data: dict) -> list[FieldError]:
    errors: list[FieldError] = []

    if _blank(data.get("date")):
        errors.append(FieldError("date", "date is required"))
    elif parse_iso_date(data["date"]) is None:
        errors.append(FieldError("date", "date must be a valid date (YYYY-MM-DD)"))

    if data.get("amount") is None or _blank(data.get("amount")):
        errors.append(FieldError("amount", "amount is required"))
    else:
        amount = parse_amount(data["amount"])
        if amount is None or amount < 0:
            errors.append(FieldError("amount", "amount must be a non-negative number"))
        elif amount >= MAX_AMOUNT or to_cents(amount) >= MAX_AMOUNT:
            errors.append(FieldError("amount", "amount is too large"))
    return errors


def _approver(data: dict) -> list[FieldError]:
    approved_by = data.get("approved_by")
    if _blank(approved_by):
        return [FieldError("approved_by", "approved_by is required")]
    if approved_by not in settings.VALID_USERS:
        return [FieldError("approved_by", f"approved_by must be one of: {', '.join(settings.VALID_USERS)}")]
    return []


def validate_incoming(data: dict) -> list[FieldError]:
    """Check an incoming-funds payload."""
    errors = _common(data)

    source = data.get("source")
    if _blank(source):
        errors.append(FieldError("source", "source is required"))
    elif source not in VALID_SOURCES:
        errors.append(FieldError("source", f"source must be one of: {', '.join(VALID_SOURCES)}"))

    errors.extend(_approver(data))
    return errors


def validate_outgoing(data: dict) -> list[FieldError]:
    """Check an outgoing-funds payload."""
    errors = _common(data)

    if _blank(data.get("recipient")):
        errors.append(FieldError("recipient", "recipient is required"))
    if _blank(data.get("purpose")):
        errors.append(FieldError("purpose", "purpose is required"))

    category = data.get("category")
    if _blank(category):
        errors.append(FieldError("category", "category is required"))
    elif category not in VALID_CATEGORIES:
        errors.append(FieldError("category", f"category must be one of: {', '.join(VALID_CATEGORIES)}"))

    errors.extend(_approver(data))
    return errors


def validate(kind: str, data: Any) -> list[FieldError]:
    if not isinstance(data, dict):
        return [FieldError("data", "data must be an object")]
    if kind == "incoming":
        return validate_incoming(data)
    return validate_outgoing(data)
