"""Row placement rules for recording a transaction into a month tab."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime

from backend.services.currency_cells import is_blank
from shared.models import TransactionType

COLUMN_GROUPS: dict[TransactionType, tuple[int, ...]] = {
    TransactionType.EXPENSE: (1, 2, 3),
    TransactionType.EARNING: (4, 5, 6),
    TransactionType.FEE: (8, 9),
}

_DATE_FORMATS = ("%m/%d/%Y", "%Y-%m-%d", "%Y/%m/%d")


@dataclass(frozen=True, slots=True)
class UpdateRow:
    """Write into an existing row whose target group is blank."""

    row_index: int


@dataclass(frozen=True, slots=True)
class InsertRow:
    """Insert a blank row at ``row_index`` then write into it."""

    row_index: int


@dataclass(frozen=True, slots=True)
class AppendRow:
    """Let the backend append below the last data row."""


Placement = UpdateRow | InsertRow | AppendRow


def parse_row_date(cell: object) -> date | None:
    """Parse a column-0 date cell written as ``m/d/yyyy`` or ISO."""

    if is_blank(cell):
        return None
    text = str(cell).strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def _cell(row: Sequence[object], index: int) -> object:
    return row[index] if index < len(row) else ""


def group_is_blank(row: Sequence[object], transaction_type: TransactionType) -> bool:
    return all(is_blank(_cell(row, index)) for index in COLUMN_GROUPS[transaction_type])


def plan_placement(
    target: date,
    transaction_type: TransactionType,
    snapshot: Sequence[Sequence[object]],
) -> Placement:
    """Pick the row a new transaction lands in.

    The earliest same-date row with a blank target group is reused; otherwise
    a row is inserted right after the last same-date row; otherwise appended.
    """

    last_same_date: int | None = None
    for row_index in range(1, len(snapshot)):
        row = snapshot[row_index]
        if not row or parse_row_date(row[0]) != target:
            continue
        if group_is_blank(row, transaction_type):
            return UpdateRow(row_index)
        last_same_date = row_index

    if last_same_date is not None:
        return InsertRow(last_same_date + 1)
    return AppendRow()
