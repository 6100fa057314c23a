"""Minimal Telegram Bot API client used by the coordinator and the poller."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Protocol
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from shared.errors import ExternalServiceError

TELEGRAM_API_URL = "https://api.telegram.org"
_MAX_MESSAGE_LENGTH = 4096


class ChatTransport(Protocol):
    def send_message(self, chat_id: int, text: str) -> None:
        """Send a plain-text reply."""

    def get_file_url(self, file_id: str) -> str:
        """Exchange an opaque file id for an HTTPS download URL."""

    def download(self, url: str) -> bytes:
        """Fetch the bytes behind a download URL."""


@dataclass(slots=True)
class TelegramClient:
    token: str
    timeout_s: float = 20.0
    base_url: str = TELEGRAM_API_URL

    def _call(self, method: str, payload: dict[str, Any], *, timeout_s: float | None = None) -> Any:
        request = Request(
            url=f"{self.base_url}/bot{self.token}/{method}",
            data=json.dumps(payload).encode("utf-8"),
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            method="POST",
        )
        try:
            with urlopen(request, timeout=timeout_s or self.timeout_s) as response:  # noqa: S310 - fixed API host
                body = json.loads(response.read().decode("utf-8"))
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace")[:300]
            raise ExternalServiceError(
                "telegram", f"Telegram {method} failed with status {exc.code}: {detail}"
            ) from exc
        except (URLError, TimeoutError, json.JSONDecodeError) as exc:
            raise ExternalServiceError("telegram", f"Telegram {method} failed: {exc}") from exc

        if not isinstance(body, dict) or not body.get("ok"):
            description = body.get("description") if isinstance(body, dict) else None
            raise ExternalServiceError("telegram", f"Telegram {method} failed: {description or 'unknown error'}")
        return body.get("result")

    def send_message(self, chat_id: int, text: str) -> None:
        for start in range(0, max(len(text), 1), _MAX_MESSAGE_LENGTH):
            self._call("sendMessage", {"chat_id": chat_id, "text": text[start : start + _MAX_MESSAGE_LENGTH]})

    def get_file_url(self, file_id: str) -> str:
        result = self._call("getFile", {"file_id": file_id})
        file_path = result.get("file_path") if isinstance(result, dict) else None
        if not isinstance(file_path, str) or not file_path:
            raise ExternalServiceError("telegram", "Telegram getFile returned no file path")
        return f"{self.base_url}/file/bot{self.token}/{file_path}"

    def download(self, url: str) -> bytes:
        try:
            with urlopen(Request(url, method="GET"), timeout=self.timeout_s) as response:  # noqa: S310 - Telegram file URL
                return response.read()
        except (HTTPError, URLError, TimeoutError) as exc:
            raise ExternalServiceError("telegram", f"Failed to download image: {exc}") from exc

    def get_updates(self, offset: int | None = None, *, poll_timeout_s: int = 30) -> list[dict[str, Any]]:
        """Long-poll for updates newer than ``offset``."""

        payload: dict[str, Any] = {"timeout": poll_timeout_s, "allowed_updates": ["message"]}
        if offset is not None:
            payload["offset"] = offset
        result = self._call("getUpdates", payload, timeout_s=poll_timeout_s + self.timeout_s)
        return [update for update in result or [] if isinstance(update, dict)]


def message_from_update(update: dict[str, Any]) -> dict[str, Any] | None:
    """Flatten a Telegram update into ``IncomingMessage`` fields."""

    message = update.get("message")
    if not isinstance(message, dict):
        return None
    chat = message.get("chat")
    if not isinstance(chat, dict) or "id" not in chat:
        return None
    return {
        "chat_id": chat["id"],
        "text": message.get("text"),
        "caption": message.get("caption"),
        "photo": message.get("photo") or [],
    }
