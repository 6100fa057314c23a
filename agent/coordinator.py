"""Ingestion coordinator: route each chat message to its pipeline."""

from __future__ import annotations

import base64
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from pydantic import ValidationError

from agent.answer_builder import (
    CLARIFICATION_QUESTION,
    CLARIFICATION_REMINDER,
    HELP_REPLY,
    UNEXPECTED_ERROR_REPLY,
    recorded_reply,
    reply_for_error,
    warning,
)
from agent.clarification import ClarificationStore, PendingImage
from agent.date_normalizer import DateNormalizer
from agent.deterministic_nlu import parse_slash_command, single_type_keyword
from agent.intent_extractor import ConvertIntent, IntentExtractor, RecordIntent
from agent.llm_client import LLMExtractor
from agent.telegram_client import ChatTransport
from backend.services.ledger_service import LedgerService
from backend.services.usd_backfill import UsdBackfillService
from backend.storage.drive_client import ReceiptFolders, ReceiptStore
from shared.errors import BookkeepingError, ConfigurationError, ExternalServiceError, IntegrityError, UserInputError
from shared.models import (
    IncomingMessage,
    Transaction,
    TransactionDate,
    TransactionExtraction,
    TransactionType,
)
from shared.months import find_month_in_text, tab_name_for, to_english_month
from shared.temp_files import temp_blob


logger = logging.getLogger(__name__)

CONVERT_COMMAND = "convert_missing_usd"


@dataclass(slots=True)
class IngestionCoordinator:
    """Single entry point for chat messages.

    Messages of one chat are handled one at a time; every non-fatal error ends
    as a WARNING/ERROR reply.
    """

    transport: ChatTransport
    intent_extractor: IntentExtractor
    date_normalizer: DateNormalizer
    ledger: LedgerService
    backfill: UsdBackfillService
    receipt_store: ReceiptStore
    folders: ReceiptFolders
    tmp_dir: Path
    llm: LLMExtractor | None = None
    clarifications: ClarificationStore = field(default_factory=ClarificationStore)
    today: Callable[[], date] = date.today

    def handle_message(self, message: IncomingMessage) -> None:
        chat_id = message.chat_id
        with self.clarifications.chat_lock(chat_id):
            try:
                self._dispatch(message)
            except ConfigurationError:
                raise
            except UserInputError as exc:
                logger.info("message_rejected chat_id=%s reason=%s", chat_id, exc.message)
                self._reply(chat_id, reply_for_error(exc))
            except BookkeepingError as exc:
                logger.exception(
                    "message_failed chat_id=%s service=%s",
                    chat_id,
                    getattr(exc, "service", None),
                )
                self._reply(chat_id, reply_for_error(exc))
            except Exception:
                logger.exception("message_failed_unexpectedly chat_id=%s", chat_id)
                self._reply(chat_id, UNEXPECTED_ERROR_REPLY)

    def _reply(self, chat_id: int, text: str) -> None:
        try:
            self.transport.send_message(chat_id, text)
        except ExternalServiceError:
            logger.exception("reply_failed chat_id=%s", chat_id)

    def _dispatch(self, message: IncomingMessage) -> None:
        chat_id = message.chat_id
        text = (message.text or "").strip()

        if text and self.clarifications.is_awaiting(chat_id):
            logger.info("dispatch chat_id=%s pipeline=clarification", chat_id)
            self._handle_clarification_reply(chat_id, text)
            return

        if message.has_photo:
            logger.info("dispatch chat_id=%s pipeline=receipt", chat_id)
            self._handle_photo(message)
            return

        if not text:
            logger.info("message_ignored chat_id=%s reason=no_text", chat_id)
            return

        command = parse_slash_command(text)
        if command is not None:
            logger.info("dispatch chat_id=%s pipeline=command command=%s", chat_id, command[0])
            self._handle_command(chat_id, *command)
            return

        intent = self.intent_extractor.extract(text, today=self.today())
        if isinstance(intent, ConvertIntent):
            logger.info("dispatch chat_id=%s pipeline=convert month=%s", chat_id, intent.month)
            self._run_backfill(chat_id, intent.month)
        elif isinstance(intent, RecordIntent):
            logger.info("dispatch chat_id=%s pipeline=record", chat_id)
            result = self.ledger.record(intent.transaction)
            self._reply(chat_id, recorded_reply(intent.transaction, result))
        else:
            logger.info("dispatch chat_id=%s pipeline=unrecognized", chat_id)
            self._reply(chat_id, intent.reply)

    def _handle_command(self, chat_id: int, command: str, argument: str) -> None:
        if command == CONVERT_COMMAND:
            month = to_english_month(argument) or find_month_in_text(argument)
            if month is None:
                raise UserInputError(
                    f"Invalid month: \"{argument or 'none'}\". Usage: /{CONVERT_COMMAND} <month>"
                )
            self._run_backfill(chat_id, month)
        elif command in {"start", "help"}:
            self._reply(chat_id, HELP_REPLY)
        else:
            self._reply(chat_id, warning(f"Unknown command /{command}.\n{HELP_REPLY}"))

    def _run_backfill(self, chat_id: int, month: str) -> None:
        self._reply(chat_id, f"Looking for USD amounts without CAD in {tab_name_for(month)}...")
        self.backfill.run(month, lambda progress: self._reply(chat_id, progress))

    @staticmethod
    def _resolve_receipt_type(extraction: TransactionExtraction, caption: str | None) -> TransactionType | None:
        if extraction.type == TransactionType.FEE:
            return TransactionType.FEE
        caption_type = single_type_keyword(caption or "")
        if caption_type is not None:
            return caption_type
        return extraction.type

    def _read_receipt(self, raw_bytes: bytes, caption: str | None) -> TransactionExtraction:
        if self.llm is None:
            raise ExternalServiceError("llm", "Receipt reading is not configured.")
        payload = self.llm.extract_receipt(base64.b64encode(raw_bytes).decode("ascii"), caption)
        if payload is None:
            raise IntegrityError("Could not extract info from image.")
        try:
            extraction = TransactionExtraction.model_validate(payload)
        except ValidationError as exc:
            raise IntegrityError("Could not extract info from image.") from exc
        if not extraction.valid:
            raise IntegrityError("The image does not look like a valid receipt.")
        if extraction.amount is None or extraction.amount <= 0:
            raise IntegrityError("Could not read a positive amount on the receipt.")
        return extraction

    def _handle_photo(self, message: IncomingMessage) -> None:
        chat_id = message.chat_id
        if self.clarifications.is_awaiting(chat_id):
            abandoned = self.clarifications.pop(chat_id)
            logger.info(
                "pending_image_abandoned chat_id=%s file_id=%s",
                chat_id,
                abandoned.file_id if abandoned else None,
            )
        photo = message.largest_photo
        assert photo is not None
        file_url = self.transport.get_file_url(photo.file_id)
        raw_bytes = self.transport.download(file_url)

        extraction = self._read_receipt(raw_bytes, message.caption)
        transaction_date = self.date_normalizer.normalize_payload(
            extraction.date, default_year=self.today().year
        )
        transaction_type = self._resolve_receipt_type(extraction, message.caption)
        if transaction_type is None:
            self.clarifications.put(
                chat_id,
                PendingImage(
                    file_id=photo.file_id,
                    parsed=extraction,
                    transaction_date=transaction_date,
                    raw_bytes=raw_bytes,
                    caption=message.caption,
                ),
            )
            self._reply(chat_id, CLARIFICATION_QUESTION)
            return

        self._finalize_receipt(chat_id, extraction, transaction_type, transaction_date, raw_bytes)

    def _handle_clarification_reply(self, chat_id: int, text: str) -> None:
        chosen = single_type_keyword(text)
        if chosen is None:
            self._reply(chat_id, CLARIFICATION_REMINDER)
            return

        pending = self.clarifications.pop(chat_id)
        assert pending is not None
        logger.info("clarification_resolved chat_id=%s type=%s", chat_id, chosen.value)
        pending.parsed.type = chosen
        self._finalize_receipt(chat_id, pending.parsed, chosen, pending.transaction_date, pending.raw_bytes)

    def _finalize_receipt(
        self,
        chat_id: int,
        extraction: TransactionExtraction,
        transaction_type: TransactionType,
        transaction_date: TransactionDate,
        raw_bytes: bytes,
    ) -> None:
        try:
            transaction = Transaction(
                type=transaction_type,
                amount=extraction.amount,
                currency=extraction.currency,
                name=extraction.name,
                date=transaction_date,
            )
        except ValidationError as exc:
            raise IntegrityError("The receipt could not be turned into a transaction.") from exc

        self.ledger.ensure_tab(tab_name_for(transaction.date.month))

        receipt_link: str | None = None
        if transaction.type != TransactionType.FEE:
            display_name = f"{transaction.display_name}_{transaction.date.to_date().isoformat()}.jpg"
            folder_id = self.folders.folder_for(transaction.name, transaction.type)
            with temp_blob(self.tmp_dir, raw_bytes) as blob_path:
                receipt_link = self.receipt_store.upload(blob_path, display_name, folder_id)

        result = self.ledger.record(transaction, receipt_link=receipt_link)
        self._reply(chat_id, recorded_reply(transaction, result, from_receipt=True))
