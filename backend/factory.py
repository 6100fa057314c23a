"""Composition root for backend services."""

from __future__ import annotations

from dataclasses import dataclass

from backend.clients.fx_client import FxRateClient
from backend.db.sheets_client import GoogleSheetsClient, SheetsSettings
from backend.repositories.ledger_repository import SheetsLedgerRepository
from backend.services.ledger_service import LedgerService
from backend.services.tab_locks import TabLocks
from backend.services.usd_backfill import UsdBackfillService
from backend.storage.drive_client import GoogleDriveReceiptStore, ReceiptFolders
from shared import config
from shared.errors import ConfigurationError


@dataclass(slots=True)
class BackendServices:
    ledger: LedgerService
    backfill: UsdBackfillService
    receipt_store: GoogleDriveReceiptStore
    folders: ReceiptFolders


def build_backend_services() -> BackendServices:
    """Wire Google Sheets, Google Drive and the FX client from the environment."""

    spreadsheet_id = config.sheet_id()
    service_account_info = config.google_service_account_info()
    expenses_folder = config.expenses_folder_id()
    earnings_folder = config.earnings_folder_id()
    if not spreadsheet_id or service_account_info is None or not expenses_folder or not earnings_folder:
        raise ConfigurationError("Google Sheets/Drive settings are incomplete")

    repository = SheetsLedgerRepository(
        GoogleSheetsClient(
            SheetsSettings(
                spreadsheet_id=spreadsheet_id,
                service_account_info=service_account_info,
            )
        )
    )
    tab_locks = TabLocks()
    fx_client = FxRateClient(base_url=config.fx_api_url(), timeout_s=config.http_timeout_s())

    return BackendServices(
        ledger=LedgerService(repository=repository, tab_locks=tab_locks),
        backfill=UsdBackfillService(repository=repository, fx=fx_client, tab_locks=tab_locks),
        receipt_store=GoogleDriveReceiptStore(service_account_info),
        folders=ReceiptFolders(expenses=expenses_folder, earnings=earnings_folder),
    )
