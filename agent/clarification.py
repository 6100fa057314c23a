"""Per-chat clarification slot for receipts whose type is unknown."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

from shared.models import TransactionDate, TransactionExtraction
from shared.temp_files import discard_temp_blob


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PendingImage:
    """Receipt parsed by OCR, waiting for the user to name its type."""

    file_id: str
    parsed: TransactionExtraction
    transaction_date: TransactionDate
    raw_bytes: bytes
    caption: str | None = None
    temp_blob_path: Path | None = None


@dataclass(slots=True)
class ClarificationStore:
    """Chat id -> pending image, plus a lock serializing each chat's messages."""

    _pending: dict[int, PendingImage] = field(default_factory=dict)
    _chat_locks: dict[int, threading.Lock] = field(default_factory=dict)
    _guard: threading.Lock = field(default_factory=threading.Lock)

    @contextmanager
    def chat_lock(self, chat_id: int) -> Iterator[None]:
        with self._guard:
            lock = self._chat_locks.setdefault(chat_id, threading.Lock())
        with lock:
            yield

    def is_awaiting(self, chat_id: int) -> bool:
        return chat_id in self._pending

    def get(self, chat_id: int) -> PendingImage | None:
        return self._pending.get(chat_id)

    def put(self, chat_id: int, pending: PendingImage) -> None:
        """Store ``pending``, abandoning any image already waiting for this chat."""

        previous = self._pending.get(chat_id)
        if previous is not None:
            logger.info("pending_image_replaced chat_id=%s file_id=%s", chat_id, previous.file_id)
            discard_temp_blob(previous.temp_blob_path)
        self._pending[chat_id] = pending
        logger.info("pending_image_stored chat_id=%s file_id=%s", chat_id, pending.file_id)

    def pop(self, chat_id: int) -> PendingImage | None:
        pending = self._pending.pop(chat_id, None)
        if pending is not None:
            discard_temp_blob(pending.temp_blob_path)
        return pending
