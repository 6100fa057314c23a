"""Back-fill CAD amounts next to USD cells using historical FX rates."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from backend.clients.fx_client import FxRateProvider
from backend.repositories.ledger_repository import LedgerRepository
from backend.services.column_mapper import (
    EARNING_CAD,
    EARNING_USD,
    EXPENSE_CAD,
    EXPENSE_USD,
    FEE_CAD,
    FEE_USD,
    normalize_row,
)
from backend.services.currency_cells import recognize_usd_cell
from backend.services.row_placement import parse_row_date
from backend.services.tab_locks import TabLocks
from shared.errors import ExternalServiceError, UserInputError
from shared.months import tab_name_for, to_english_month


logger = logging.getLogger(__name__)

USD_CAD_PAIRS: tuple[tuple[int, int], ...] = (
    (EXPENSE_USD, EXPENSE_CAD),
    (EARNING_USD, EARNING_CAD),
    (FEE_USD, FEE_CAD),
)


@dataclass(slots=True)
class BackfillReport:
    tab: str
    converted: int = 0
    failed: int = 0
    skipped_rows: int = 0

    def summary(self) -> str:
        if self.converted == 0 and self.failed == 0:
            return f"No missing CAD amounts found in {self.tab}."
        text = f"Converted {self.converted} USD amount(s) in {self.tab}."
        if self.failed:
            text += f" {self.failed} row(s) failed, see messages above."
        return text


@dataclass(slots=True)
class UsdBackfillService:
    repository: LedgerRepository
    fx: FxRateProvider
    tab_locks: TabLocks = field(default_factory=TabLocks)

    def run(self, month: str, notify: Callable[[str], None]) -> BackfillReport:
        """Convert every USD cell lacking a CAD value in the month tab.

        The tab lock is held from the read until the last write, and only the
        CAD cells are written. An FX failure on one row is reported
        through ``notify`` and the scan continues.
        """

        english_month = to_english_month(month) or month
        tab = tab_name_for(english_month)
        report = BackfillReport(tab=tab)
        if tab not in self.repository.list_tabs():
            raise UserInputError(f"Sheet tab '{tab}' not found")

        with self.tab_locks.lock_for(tab):
            rows = self.repository.read(tab)
            if len(rows) <= 1:
                notify(f"No data found in {tab}.")
                return report

            for row_index in range(1, len(rows)):
                self._convert_row(tab, row_index, normalize_row(rows[row_index]), report, notify)

        notify(report.summary())
        return report

    def _convert_row(
        self,
        tab: str,
        row_index: int,
        row: list[str],
        report: BackfillReport,
        notify: Callable[[str], None],
    ) -> None:
        row_date = parse_row_date(row[0])
        if row_date is None:
            report.skipped_rows += 1
            return

        pending: list[tuple[int, Decimal]] = []
        for usd_index, cad_index in USD_CAD_PAIRS:
            is_usd, value = recognize_usd_cell(row[usd_index], row[cad_index])
            if is_usd and value is not None:
                pending.append((cad_index, value))
        if not pending:
            return

        try:
            rate = self.fx.usd_to_cad(row_date)
        except ExternalServiceError as exc:
            report.failed += 1
            logger.warning("usd_backfill_row_failed tab=%s row_index=%s error=%s", tab, row_index, exc.message)
            notify(f"ERROR: Could not fetch the USD/CAD rate for row {row_index + 1} ({row[0]}): {exc.message}")
            return

        cells: dict[int, str] = {}
        for cad_index, value in pending:
            converted = (value * rate).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
            cells[cad_index] = format(converted, "f")
            notify(f"Row {row_index + 1} ({row[0]}): ${value} USD -> {cells[cad_index]} CAD at {rate}")
        self.repository.update_cells(tab, row_index, cells)
        report.converted += len(pending)
        logger.info(
            "usd_backfill_row_converted tab=%s row_index=%s cells=%s rate=%s",
            tab,
            row_index,
            len(pending),
            rate,
        )
