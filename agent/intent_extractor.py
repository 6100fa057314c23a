"""Turn a text message into a conversion, a transaction, or nothing."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from pydantic import ValidationError

from agent.answer_builder import UNRECOGNIZED_REPLY
from agent.date_normalizer import DateNormalizer
from agent.deterministic_nlu import mentions_all_months, parse_conversion_intent, parse_transaction_text
from agent.llm_client import LLMExtractor
from shared.errors import ExternalServiceError, UserInputError
from shared.models import ConversionClassification, Transaction, TransactionExtraction
from shared.months import to_english_month


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RecordIntent:
    """Record the transaction into its month tab."""

    transaction: Transaction


@dataclass(slots=True)
class ConvertIntent:
    """Back-fill missing CAD amounts for a month."""

    month: str


@dataclass(slots=True)
class UnrecognizedIntent:
    reply: str = UNRECOGNIZED_REPLY


Intent = RecordIntent | ConvertIntent | UnrecognizedIntent


def build_transaction(
    extraction: TransactionExtraction,
    date_normalizer: DateNormalizer,
    *,
    today: date | None = None,
) -> Transaction:
    """Validate an extraction into a ``Transaction``.

    Raises ``UserInputError`` for invalid payloads and unparseable dates.
    """

    if not extraction.valid or extraction.type is None:
        raise UserInputError("The message does not describe a transaction.")
    if extraction.amount is None or extraction.amount <= 0:
        raise UserInputError("The transaction amount must be a positive number.")

    default_year = (today or date.today()).year
    transaction_date = date_normalizer.normalize_payload(extraction.date, default_year=default_year)
    try:
        return Transaction(
            type=extraction.type,
            amount=extraction.amount,
            currency=extraction.currency,
            name=extraction.name,
            date=transaction_date,
        )
    except ValidationError as exc:
        raise UserInputError("The transaction could not be validated.") from exc


@dataclass(slots=True)
class IntentExtractor:
    date_normalizer: DateNormalizer
    llm: LLMExtractor | None = None

    def _llm_conversion(self, text: str) -> str | None:
        if self.llm is None:
            return None
        try:
            payload = self.llm.classify_conversion(text)
        except ExternalServiceError:
            logger.info("conversion_classification_unavailable")
            return None
        if payload is None:
            return None
        try:
            classification = ConversionClassification.model_validate(payload)
        except ValidationError:
            return None
        if not classification.isConversionRequest or not classification.month:
            return None
        return to_english_month(classification.month)

    def conversion_month(self, text: str) -> str | None:
        """Passes A (regex family) and B (LLM classification)."""

        month = parse_conversion_intent(text)
        if month is not None:
            return month
        if mentions_all_months(text):
            logger.info("conversion_all_months_rejected")
            return None
        return self._llm_conversion(text)

    def _extract_with_llm(self, text: str, today: date | None) -> Transaction | None:
        if self.llm is None:
            return None
        payload = self.llm.extract_transaction(text, today=today)
        if payload is None:
            return None
        try:
            extraction = TransactionExtraction.model_validate(payload)
        except ValidationError:
            logger.info("transaction_extraction_rejected reason=schema")
            return None
        try:
            return build_transaction(extraction, self.date_normalizer, today=today)
        except UserInputError as exc:
            logger.info("transaction_extraction_rejected reason=%s", exc.message)
            return None

    def _extract_with_regex(self, text: str, today: date | None) -> Transaction | None:
        payload = parse_transaction_text(text)
        if payload is None:
            return None
        try:
            extraction = TransactionExtraction.model_validate(payload)
            return build_transaction(extraction, self.date_normalizer, today=today)
        except (ValidationError, UserInputError):
            return None

    def transaction(self, text: str, *, today: date | None = None) -> Transaction | None:
        """Pass C: LLM extraction with a regex fallback."""

        llm_error: ExternalServiceError | None = None
        try:
            transaction = self._extract_with_llm(text, today)
        except ExternalServiceError as exc:
            llm_error = exc
            transaction = None
        if transaction is not None:
            return transaction

        transaction = self._extract_with_regex(text, today)
        if transaction is not None:
            return transaction
        if llm_error is not None:
            raise llm_error
        return None

    def extract(self, text: str, *, today: date | None = None) -> Intent:
        month = self.conversion_month(text)
        if month is not None:
            return ConvertIntent(month=month)

        transaction = self.transaction(text, today=today)
        if transaction is not None:
            return RecordIntent(transaction=transaction)
        return UnrecognizedIntent()
