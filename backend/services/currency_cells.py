"""Recognize USD amounts written in spreadsheet cells."""

from __future__ import annotations

import re
from collections.abc import Callable
from decimal import Decimal, InvalidOperation


def _strip_to_number(cell: str) -> str:
    return re.sub(r"[^\d.]", "", cell)


# Each accepted surface form with the extractor yielding its numeric text.
_USD_CELL_FORMS: tuple[tuple[re.Pattern[str], Callable[[str], str]], ...] = (
    (re.compile(r"^\$?\s*\d+(\.\d+)?$"), _strip_to_number),
    (re.compile(r"^\d+(\.\d+)?\s*USD$", re.IGNORECASE), _strip_to_number),
    (re.compile(r"^USD\s*\d+(\.\d+)?$", re.IGNORECASE), _strip_to_number),
    (re.compile(r"^\d+(\.\d+)?\s*\$$"), _strip_to_number),
)


def is_blank(cell: object) -> bool:
    """Return True for missing, empty or whitespace-only cells."""

    if cell is None:
        return True
    return not str(cell).strip()


def parse_usd_cell(cell: object) -> Decimal | None:
    """Return the positive USD value held by the cell, or None."""

    if is_blank(cell):
        return None

    stripped = str(cell).strip()
    for pattern, extractor in _USD_CELL_FORMS:
        if not pattern.match(stripped):
            continue
        try:
            value = Decimal(extractor(stripped))
        except InvalidOperation:
            return None
        return value if value > 0 else None
    return None


def recognize_usd_cell(cell: object, paired_cad_cell: object = "") -> tuple[bool, Decimal | None]:
    """Decide whether ``cell`` is a USD amount still lacking its CAD counterpart."""

    if not is_blank(paired_cad_cell):
        return False, None
    value = parse_usd_cell(cell)
    if value is None:
        return False, None
    return True, value
