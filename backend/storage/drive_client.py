"""Receipt blob store backed by Google Drive."""

from __future__ import annotations

import logging
import mimetypes
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaFileUpload

from shared.errors import ExternalServiceError
from shared.models import TransactionType


logger = logging.getLogger(__name__)

DRIVE_SCOPES = ("https://www.googleapis.com/auth/drive",)
_EARNING_NAME_PATTERN = re.compile(r"earning|revenue|invoice|payment received", re.IGNORECASE)


class ReceiptStore(Protocol):
    def upload(self, local_path: Path, display_name: str, folder_id: str) -> str:
        """Upload a file readable by anyone holding the returned URL."""


@dataclass(slots=True)
class ReceiptFolders:
    expenses: str
    earnings: str

    def folder_for(self, name: str, transaction_type: TransactionType | None = None) -> str:
        """Earnings folder for earnings and earning-like names, expenses otherwise."""

        if transaction_type == TransactionType.EARNING or _EARNING_NAME_PATTERN.search(name or ""):
            return self.earnings
        return self.expenses


class GoogleDriveReceiptStore:
    def __init__(self, service_account_info: dict[str, Any], service: Any | None = None) -> None:
        self._service_account_info = service_account_info
        self._service = service

    def _files(self) -> Any:
        if self._service is None:
            credentials = service_account.Credentials.from_service_account_info(
                self._service_account_info,
                scopes=list(DRIVE_SCOPES),
            )
            self._service = build("drive", "v3", credentials=credentials, cache_discovery=False)
        return self._service

    def upload(self, local_path: Path, display_name: str, folder_id: str) -> str:
        mime_type = mimetypes.guess_type(display_name)[0] or "image/jpeg"
        service = self._files()
        try:
            created = (
                service.files()
                .create(
                    body={"name": display_name, "parents": [folder_id]},
                    media_body=MediaFileUpload(str(local_path), mimetype=mime_type, resumable=False),
                    fields="id,webViewLink",
                    supportsAllDrives=True,
                )
                .execute()
            )
            file_id = created["id"]
            service.permissions().create(
                fileId=file_id,
                body={"type": "anyone", "role": "reader"},
                supportsAllDrives=True,
            ).execute()
        except (HttpError, OSError, KeyError) as exc:
            raise ExternalServiceError("drive", f"Receipt upload failed: {exc}") from exc

        link = created.get("webViewLink") or f"https://drive.google.com/file/d/{file_id}/view"
        logger.info("receipt_uploaded file_id=%s folder_id=%s", file_id, folder_id)
        return link
