"""Map a transaction onto the twelve ledger columns."""

from __future__ import annotations

from collections.abc import Sequence

from backend.services.currency_cells import is_blank
from shared.models import Currency, Transaction, TransactionType, format_amount

ROW_WIDTH = 12

DATE_COLUMN = 0
EXPENSE_PARTY, EXPENSE_CAD, EXPENSE_USD = 1, 2, 3
EARNING_PARTY, EARNING_CAD, EARNING_USD = 4, 5, 6
FEE_USD, FEE_CAD = 8, 9
EXPENSE_RECEIPT, EARNING_RECEIPT = 10, 11

_GROUP_COLUMNS: dict[TransactionType, tuple[int, int, int | None, int | None]] = {
    # type: (cad, usd, party, receipt)
    TransactionType.EXPENSE: (EXPENSE_CAD, EXPENSE_USD, EXPENSE_PARTY, EXPENSE_RECEIPT),
    TransactionType.EARNING: (EARNING_CAD, EARNING_USD, EARNING_PARTY, EARNING_RECEIPT),
    TransactionType.FEE: (FEE_CAD, FEE_USD, None, None),
}
def _clean_cell(value: object) -> str:
    if value is None:
        return ""
    text = str(value)
    if text.strip().lower() in {"undefined", "null", "none"}:
        return ""
    return text


def blank_row() -> list[str]:
    return [""] * ROW_WIDTH


def normalize_row(row: Sequence[object] | None) -> list[str]:
    """Pad or trim a sheet row to exactly ``ROW_WIDTH`` string cells.

    Cell text is kept as read; only missing cells become empty strings.
    """

    cells = ["" if value is None else str(value) for value in (row or [])][:ROW_WIDTH]
    return cells + [""] * (ROW_WIDTH - len(cells))


def changed_cells(before: Sequence[object], after: Sequence[str]) -> dict[int, str]:
    """Return ``{column: value}`` for every cell of ``after`` differing from ``before``."""

    previous = normalize_row(before)
    return {index: value for index, value in enumerate(after) if value != previous[index]}


def map_transaction(
    transaction: Transaction,
    existing_row: Sequence[object] | None = None,
    *,
    receipt_link: str | None = None,
) -> list[str]:
    """Return the row values after recording ``transaction`` into ``existing_row``.

    Only column 0 and the transaction's own column group (plus its receipt
    column when a link is given) may change; every other cell is preserved.
    """

    row = normalize_row(existing_row)
    row[DATE_COLUMN] = transaction.date.formatted()

    cad_index, usd_index, party_index, receipt_index = _GROUP_COLUMNS[transaction.type]
    amount_text = format_amount(transaction.amount)

    if party_index is not None:
        row[party_index] = _clean_cell(transaction.name) or _clean_cell(row[party_index]) or "Unknown"

    if transaction.currency == Currency.CAD:
        row[cad_index] = amount_text
    else:
        row[usd_index] = f"${amount_text}"

    link = _clean_cell(receipt_link or transaction.receipt_link)
    if receipt_index is not None and link:
        current = _clean_cell(row[receipt_index])
        row[receipt_index] = current if not is_blank(current) else link
    return row
