"""Repository interfaces and adapters for the month-tab ledger."""

from __future__ import annotations

from typing import Protocol

from backend.db.sheets_client import GoogleSheetsClient, column_letter, quote_tab
from backend.services.column_mapper import ROW_WIDTH, normalize_row
from shared.errors import UserInputError


class LedgerRepository(Protocol):
    def list_tabs(self) -> dict[str, int]:
        """Return tab titles mapped to their stable sheet ids."""

    def read(self, tab: str, range_a1: str = "A1:Z") -> list[list[str]]:
        """Return the tab rows (row 0 is the header), padded to the ledger width."""

    def update(self, tab: str, row_index: int, values: list[str]) -> None:
        """Overwrite the row at ``row_index`` starting at column A."""

    def update_cells(self, tab: str, row_index: int, cells: dict[int, str]) -> None:
        """Overwrite only the given ``{column: value}`` cells of one row."""

    def insert_blank_row(self, tab: str, row_index: int) -> None:
        """Shift rows at and below ``row_index`` down by one."""

    def append(self, tab: str, values: list[str]) -> None:
        """Place ``values`` below the last data row."""


class SheetsLedgerRepository:
    """Ledger repository backed by a Google Sheets document."""

    def __init__(self, client: GoogleSheetsClient) -> None:
        self._client = client
        self._sheet_ids: dict[str, int] | None = None

    def list_tabs(self) -> dict[str, int]:
        self._sheet_ids = self._client.get_sheet_ids()
        return dict(self._sheet_ids)

    def _sheet_id(self, tab: str) -> int:
        if self._sheet_ids is None or tab not in self._sheet_ids:
            self.list_tabs()
        assert self._sheet_ids is not None
        if tab not in self._sheet_ids:
            raise UserInputError(f"Sheet tab '{tab}' not found")
        return self._sheet_ids[tab]

    def read(self, tab: str, range_a1: str = "A1:Z") -> list[list[str]]:
        rows = self._client.get_values(f"{quote_tab(tab)}!{range_a1}")
        return [normalize_row(row) for row in rows]

    def update(self, tab: str, row_index: int, values: list[str]) -> None:
        self._client.update_values(f"{quote_tab(tab)}!A{row_index + 1}", [list(values)])

    def update_cells(self, tab: str, row_index: int, cells: dict[int, str]) -> None:
        self._client.batch_update_values(
            [
                {"range": f"{quote_tab(tab)}!{column_letter(column)}{row_index + 1}", "values": [[value]]}
                for column, value in sorted(cells.items())
            ]
        )

    def insert_blank_row(self, tab: str, row_index: int) -> None:
        self._client.insert_rows(self._sheet_id(tab), row_index)

    def append(self, tab: str, values: list[str]) -> None:
        self._client.append_values(f"{quote_tab(tab)}!A2", [list(values)])


class InMemoryLedgerRepository:
    """In-memory ledger used for local runs and tests."""

    def __init__(self, tabs: dict[str, list[list[str]]] | None = None) -> None:
        self.tabs: dict[str, list[list[str]]] = {
            name: [normalize_row(row) for row in rows] for name, rows in (tabs or {}).items()
        }
        self.operations: list[tuple[str, str, int | None]] = []
        self.cell_writes: list[tuple[str, int, dict[int, str]]] = []

    def _rows(self, tab: str) -> list[list[str]]:
        if tab not in self.tabs:
            raise UserInputError(f"Sheet tab '{tab}' not found")
        return self.tabs[tab]

    def list_tabs(self) -> dict[str, int]:
        return {name: index for index, name in enumerate(self.tabs)}

    def read(self, tab: str, range_a1: str = "A1:Z") -> list[list[str]]:
        return [list(row) for row in self._rows(tab)]

    def update(self, tab: str, row_index: int, values: list[str]) -> None:
        rows = self._rows(tab)
        while len(rows) <= row_index:
            rows.append([""] * ROW_WIDTH)
        rows[row_index] = normalize_row(values)
        self.operations.append(("update", tab, row_index))

    def update_cells(self, tab: str, row_index: int, cells: dict[int, str]) -> None:
        rows = self._rows(tab)
        while len(rows) <= row_index:
            rows.append([""] * ROW_WIDTH)
        for column, value in cells.items():
            rows[row_index][column] = value
        self.operations.append(("update_cells", tab, row_index))
        self.cell_writes.append((tab, row_index, dict(cells)))

    def insert_blank_row(self, tab: str, row_index: int) -> None:
        rows = self._rows(tab)
        rows.insert(min(row_index, len(rows)), [""] * ROW_WIDTH)
        self.operations.append(("insert_blank_row", tab, row_index))

    def append(self, tab: str, values: list[str]) -> None:
        rows = self._rows(tab)
        if not rows:
            rows.append([""] * ROW_WIDTH)
        last_data_index = 0
        for index in range(1, len(rows)):
            if any(cell.strip() for cell in rows[index]):
                last_data_index = index
        target = last_data_index + 1
        if target < len(rows):
            rows[target] = normalize_row(values)
        else:
            rows.append(normalize_row(values))
        self.operations.append(("append", tab, target))
