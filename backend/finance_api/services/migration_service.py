"""Migration service: one-off import of the legacy spreadsheet rows.

The old spreadsheet exported plain rows of cells:

    incoming: Date, Amount, Source, Donor Initials, Net Income, Purpose/Note, Approved By
    outgoing: Date, Amount, Recipient, Purpose, Category, Approved By

Dates are usually DD-MM-YYYY and amounts may carry currency symbols. The Net
Income column is ignored and recomputed from amount and source.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from finance_api.errors import StorageError
from finance_api.services import fund_service, validation

logger = logging.getLogger(__name__)

INCOMING_COLUMNS = 7
OUTGOING_COLUMNS = 6

_AMOUNT_NOISE = re.compile(r"[£$,\s]")
_DATE_FORMATS = ("%d-%m-%Y", "%d/%m/%Y", "%Y-%m-%d")


@dataclass
class MigrationResult:
    incoming_processed: int = 0
    outgoing_processed: int = 0
    errors: list[str] = field(default_factory=list)


def parse_legacy_date(value) -> Optional[date]:
    if not value:
        return None
    text = str(value).strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return validation.parse_iso_date(text)


def parse_legacy_amount(value) -> Optional[Decimal]:
    """Strip currency symbols and thousands separators. None when unparseable."""
    if value is None:
        return None
    return validation.parse_amount(_AMOUNT_NOISE.sub("", str(value)))


def _cell(row: list, index: int) -> Optional[str]:
    value = row[index]
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _is_blank_row(row) -> bool:
    return not row or all(_cell(row, i) is None for i in range(len(row)))


def incoming_row_to_data(row: list) -> dict:
    parsed = parse_legacy_date(row[0])
    amount = parse_legacy_amount(row[1])
    return {
        "date": parsed.isoformat() if parsed else _cell(row, 0),
        "amount": str(amount) if amount is not None else _cell(row, 1),
        "source": _cell(row, 2),
        "donor_initials": _cell(row, 3),
        "purpose_note": _cell(row, 5),
        "approved_by": _cell(row, 6),
    }


def outgoing_row_to_data(row: list) -> dict:
    parsed = parse_legacy_date(row[0])
    amount = parse_legacy_amount(row[1])
    return {
        "date": parsed.isoformat() if parsed else _cell(row, 0),
        "amount": str(amount) if amount is not None else _cell(row, 1),
        "recipient": _cell(row, 2),
        "purpose": _cell(row, 3),
        "category": _cell(row, 4),
        "approved_by": _cell(row, 5),
    }


_LAYOUTS = {
    "incoming": (INCOMING_COLUMNS, incoming_row_to_data),
    "outgoing": (OUTGOING_COLUMNS, outgoing_row_to_data),
}


def _import_rows(db: Session, kind: str, rows: list, acting_user: str, errors: list[str]) -> int:
    columns, to_data = _LAYOUTS[kind]
    processed = 0
    logger.info("Migrating %d %s rows...", len(rows), kind)

    for index, row in enumerate(rows):
        label = f"Row {index + 1}"
        if not isinstance(row, list):
            errors.append(f"{label} ({kind}): Row must be a list of cells")
            continue
        if _is_blank_row(row):
            continue
        if len(row) < columns:
            errors.append(f"{label} ({kind}): Insufficient columns (expected {columns})")
            continue

        data = to_data(row)
        problems = validation.validate(kind, data)
        if problems:
            errors.extend(f"{label} ({kind}): {p}" for p in problems)
            continue

        try:
            fund_service.insert_record(db, kind, data, acting_user)
        except StorageError as e:
            errors.append(f"{label} ({kind}): {e.message}")
            continue
        processed += 1
    return processed


def migrate(
    db: Session,
    incoming_rows: Optional[list],
    outgoing_rows: Optional[list],
    acting_user: str,
) -> MigrationResult:
    """Import legacy rows. Bad rows are reported and skipped, never fatal."""
    result = MigrationResult()
    if incoming_rows:
        result.incoming_processed = _import_rows(db, "incoming", incoming_rows, acting_user, result.errors)
    if outgoing_rows:
        result.outgoing_processed = _import_rows(db, "outgoing", outgoing_rows, acting_user, result.errors)

    logger.info(
        "%s migrated %d incoming and %d outgoing record(s), %d error(s)",
        acting_user,
        result.incoming_processed,
        result.outgoing_processed,
        len(result.errors),
    )
    return result
