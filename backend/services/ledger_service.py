"""Record transactions into month tabs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from backend.repositories.ledger_repository import LedgerRepository
from backend.services.column_mapper import blank_row, changed_cells, map_transaction
from backend.services.row_placement import AppendRow, InsertRow, UpdateRow, plan_placement
from backend.services.tab_locks import TabLocks
from shared.errors import UserInputError
from shared.models import Transaction
from shared.months import tab_name_for


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RecordResult:
    tab: str
    action: str
    row_index: int | None
    date_text: str


@dataclass(slots=True)
class LedgerService:
    repository: LedgerRepository
    tab_locks: TabLocks = field(default_factory=TabLocks)

    def ensure_tab(self, tab: str) -> None:
        if tab not in self.repository.list_tabs():
            raise UserInputError(f"Sheet tab '{tab}' not found")

    def record(self, transaction: Transaction, *, receipt_link: str | None = None) -> RecordResult:
        """Place and write one transaction; returns where it landed."""

        if not transaction.valid:
            raise UserInputError("The transaction was flagged as invalid and was not recorded.")

        try:
            target_date = transaction.date.to_date()
        except ValueError as exc:
            raise UserInputError(f"Invalid date: {transaction.date.day} {transaction.date.month}") from exc

        tab = tab_name_for(transaction.date.month)
        self.ensure_tab(tab)

        with self.tab_locks.lock_for(tab):
            snapshot = self.repository.read(tab)
            placement = plan_placement(target_date, transaction.type, snapshot)

            if isinstance(placement, UpdateRow):
                existing = snapshot[placement.row_index]
                row = map_transaction(transaction, existing, receipt_link=receipt_link)
                self.repository.update_cells(tab, placement.row_index, changed_cells(existing, row))
                result = RecordResult(tab, "update", placement.row_index, row[0])
            elif isinstance(placement, InsertRow):
                row = map_transaction(transaction, blank_row(), receipt_link=receipt_link)
                self.repository.insert_blank_row(tab, placement.row_index)
                self.repository.update(tab, placement.row_index, row)
                result = RecordResult(tab, "insert", placement.row_index, row[0])
            else:
                assert isinstance(placement, AppendRow)
                row = map_transaction(transaction, blank_row(), receipt_link=receipt_link)
                self.repository.append(tab, row)
                result = RecordResult(tab, "append", None, row[0])

        logger.info(
            "transaction_recorded tab=%s action=%s row_index=%s type=%s currency=%s",
            result.tab,
            result.action,
            result.row_index,
            transaction.type.value,
            transaction.currency.value,
        )
        return result
