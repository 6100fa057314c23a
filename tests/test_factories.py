"""Tests for composition roots."""

import pytest

from agent.coordinator import IngestionCoordinator
from agent.factory import build_coordinator
from agent.telegram_client import TelegramClient
from backend.db.sheets_client import GoogleSheetsClient
from backend.storage.drive_client import GoogleDriveReceiptStore
from shared.errors import ConfigurationError


def _set_required(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "token")
    monkeypatch.setenv("GOOGLE_SHEET_ID", "sheet")
    monkeypatch.setenv("GOOGLE_SERVICE_ACCOUNT_KEY", '{"type": "service_account"}')
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("EXPENSES_FOLDER_ID", "folder-expenses")
    monkeypatch.setenv("EARNINGS_FOLDER_ID", "folder-earnings")
    monkeypatch.setenv("TMP_DIR", str(tmp_path / "tmp"))


def test_build_coordinator_wires_real_adapters_lazily(monkeypatch, tmp_path) -> None:
    _set_required(monkeypatch, tmp_path)

    coordinator = build_coordinator()

    assert isinstance(coordinator, IngestionCoordinator)
    assert isinstance(coordinator.transport, TelegramClient)
    assert isinstance(coordinator.receipt_store, GoogleDriveReceiptStore)
    assert isinstance(coordinator.ledger.repository._client, GoogleSheetsClient)
    assert coordinator.folders.expenses == "folder-expenses"
    assert coordinator.tmp_dir == tmp_path / "tmp"


def test_build_coordinator_fails_fast_without_settings(monkeypatch, tmp_path) -> None:
    _set_required(monkeypatch, tmp_path)
    monkeypatch.delenv("GOOGLE_SHEET_ID")

    with pytest.raises(ConfigurationError):
        build_coordinator()
