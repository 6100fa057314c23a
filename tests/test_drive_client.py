"""Tests for the Google Drive receipt store."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from backend.storage.drive_client import GoogleDriveReceiptStore, ReceiptFolders
from shared.models import TransactionType


class _Request:
    def __init__(self, result: dict[str, Any]) -> None:
        self._result = result

    def execute(self) -> dict[str, Any]:
        return self._result


class _FakeDrive:
    def __init__(self) -> None:
        self.created: list[dict[str, Any]] = []
        self.permissions_granted: list[dict[str, Any]] = []

    def files(self) -> _FakeDrive:
        return self

    def permissions(self) -> _FakePermissions:
        return _FakePermissions(self.permissions_granted)

    def create(self, **kwargs: Any) -> _Request:
        self.created.append(kwargs)
        return _Request({"id": "file-1", "webViewLink": "https://drive.example/file-1"})


class _FakePermissions:
    def __init__(self, granted: list[dict[str, Any]]) -> None:
        self._granted = granted

    def create(self, **kwargs: Any) -> _Request:
        self._granted.append(kwargs)
        return _Request({})


def test_folder_routing() -> None:
    folders = ReceiptFolders(expenses="exp", earnings="earn")

    assert folders.folder_for("Staples", TransactionType.EXPENSE) == "exp"
    assert folders.folder_for("Staples", TransactionType.EARNING) == "earn"
    assert folders.folder_for("Client invoice", TransactionType.EXPENSE) == "earn"


def test_upload_shares_file_with_anyone_holding_the_link(tmp_path: Path) -> None:
    blob = tmp_path / "r.jpg"
    blob.write_bytes(b"\xff\xd8")
    drive = _FakeDrive()

    link = GoogleDriveReceiptStore({}, service=drive).upload(blob, "Staples_2025-06-03.jpg", "exp")

    assert link == "https://drive.example/file-1"
    assert drive.created[0]["body"] == {"name": "Staples_2025-06-03.jpg", "parents": ["exp"]}
    assert drive.permissions_granted == [
        {"fileId": "file-1", "body": {"type": "anyone", "role": "reader"}, "supportsAllDrives": True}
    ]
