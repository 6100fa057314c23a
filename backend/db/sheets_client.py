"""Minimal Google Sheets client used by the ledger repository only."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from shared.errors import ExternalServiceError

SHEETS_SCOPES = ("https://www.googleapis.com/auth/spreadsheets",)


@dataclass(slots=True)
class SheetsSettings:
    spreadsheet_id: str
    service_account_info: dict[str, Any]


def quote_tab(tab: str) -> str:
    """Quote a tab title for A1 notation."""

    return "'" + tab.replace("'", "''") + "'"


def column_letter(index: int) -> str:
    """Return the A1 column letter of a zero-based column index below 26."""

    return chr(ord("A") + index)


class GoogleSheetsClient:
    def __init__(self, settings: SheetsSettings, service: Any | None = None) -> None:
        self.settings = settings
        self._service = service

    def _spreadsheets(self) -> Any:
        if self._service is None:
            credentials = service_account.Credentials.from_service_account_info(
                self.settings.service_account_info,
                scopes=list(SHEETS_SCOPES),
            )
            self._service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
        return self._service.spreadsheets()

    def _execute(self, request: Any, operation: str) -> dict[str, Any]:
        try:
            return request.execute() or {}
        except HttpError as exc:
            status = getattr(exc.resp, "status", "unknown")
            raise ExternalServiceError(
                "sheets",
                f"Google Sheets {operation} failed with status {status}",
            ) from exc
        except OSError as exc:
            raise ExternalServiceError("sheets", f"Google Sheets {operation} failed: {exc}") from exc

    def get_sheet_ids(self) -> dict[str, int]:
        """Return ``{tab title: sheetId}`` for every tab of the document."""

        payload = self._execute(
            self._spreadsheets().get(
                spreadsheetId=self.settings.spreadsheet_id,
                fields="sheets.properties(sheetId,title)",
            ),
            "metadata read",
        )
        sheet_ids: dict[str, int] = {}
        for sheet in payload.get("sheets", []):
            properties = sheet.get("properties") or {}
            title = properties.get("title")
            if isinstance(title, str):
                sheet_ids[title] = int(properties.get("sheetId", 0))
        return sheet_ids

    def get_values(self, range_a1: str) -> list[list[str]]:
        payload = self._execute(
            self._spreadsheets().values().get(
                spreadsheetId=self.settings.spreadsheet_id,
                range=range_a1,
            ),
            "read",
        )
        return [[str(cell) for cell in row] for row in payload.get("values", [])]

    def update_values(self, range_a1: str, values: list[list[str]]) -> None:
        self._execute(
            self._spreadsheets().values().update(
                spreadsheetId=self.settings.spreadsheet_id,
                range=range_a1,
                valueInputOption="USER_ENTERED",
                body={"values": values},
            ),
            "update",
        )

    def append_values(self, range_a1: str, values: list[list[str]]) -> None:
        self._execute(
            self._spreadsheets().values().append(
                spreadsheetId=self.settings.spreadsheet_id,
                range=range_a1,
                valueInputOption="USER_ENTERED",
                insertDataOption="INSERT_ROWS",
                body={"values": values},
            ),
            "append",
        )

    def insert_rows(self, sheet_id: int, start_index: int, count: int = 1) -> None:
        self._execute(
            self._spreadsheets().batchUpdate(
                spreadsheetId=self.settings.spreadsheet_id,
                body={
                    "requests": [
                        {
                            "insertDimension": {
                                "range": {
                                    "sheetId": sheet_id,
                                    "dimension": "ROWS",
                                    "startIndex": start_index,
                                    "endIndex": start_index + count,
                                },
                                "inheritFromBefore": start_index > 0,
                            }
                        }
                    ]
                },
            ),
            "row insert",
        )

    def batch_update_values(self, data: list[dict[str, Any]]) -> None:
        """Write several ``{"range", "values"}`` blocks in one request."""

        if not data:
            return
        self._execute(
            self._spreadsheets().values().batchUpdate(
                spreadsheetId=self.settings.spreadsheet_id,
                body={"valueInputOption": "USER_ENTERED", "data": data},
            ),
            "cell update",
        )
