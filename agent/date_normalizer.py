"""Normalize free-form date phrases into day/month/year triples."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Any

from pydantic import ValidationError

from agent.llm_client import LLMExtractor
from shared.errors import ExternalServiceError, UserInputError
from shared.models import LLMDateResult, TransactionDate
from shared.months import ENGLISH_MONTHS, to_english_month


logger = logging.getLogger(__name__)

_NUMERIC_DMY = re.compile(r"^(\d{1,2})[/.-](\d{1,2})(?:[/.-](\d{2}|\d{4}))?$")
_NUMERIC_ISO = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_TOKEN_SPLIT = re.compile(r"[\s,]+")
_ORDINAL_SUFFIX = re.compile(r"^(\d{1,2})(?:st|nd|rd|th|er|e)$", re.IGNORECASE)
_FILLER_WORDS = {"on", "the", "of", "le", "de", "du"}


def _invalid(phrase: str) -> UserInputError:
    return UserInputError(f"Invalid date: {phrase}")


def _build(phrase: str, day: int, month: str, year: int | None) -> TransactionDate:
    try:
        result = TransactionDate(day=day, month=month, year=year or date.today().year)
        result.to_date()
    except (ValidationError, ValueError) as exc:
        raise _invalid(phrase) from exc
    return result


def _expand_year(raw: str | None) -> int | None:
    if raw is None:
        return None
    year = int(raw)
    return year + 2000 if year < 100 else year


def parse_date_deterministic(phrase: str, *, default_year: int | None = None) -> TransactionDate:
    """Token-based date parsing used when the LLM cannot help."""

    stripped = (phrase or "").strip()
    if not stripped:
        raise _invalid(phrase)

    iso_match = _NUMERIC_ISO.match(stripped)
    if iso_match:
        year, month, day = (int(part) for part in iso_match.groups())
        if not 1 <= month <= 12:
            raise _invalid(phrase)
        return _build(phrase, day, ENGLISH_MONTHS[month - 1], year)

    numeric_match = _NUMERIC_DMY.match(stripped)
    if numeric_match:
        day, month = int(numeric_match.group(1)), int(numeric_match.group(2))
        if not 1 <= month <= 12:
            raise _invalid(phrase)
        year = _expand_year(numeric_match.group(3)) or default_year
        return _build(phrase, day, ENGLISH_MONTHS[month - 1], year)

    day: int | None = None
    month: str | None = None
    year: int | None = None
    for token in _TOKEN_SPLIT.split(stripped):
        cleaned = token.strip().strip(".").lower()
        if not cleaned or cleaned in _FILLER_WORDS:
            continue
        ordinal = _ORDINAL_SUFFIX.match(cleaned)
        if ordinal:
            cleaned = ordinal.group(1)
        if cleaned.isdigit():
            if len(cleaned) == 4 and year is None:
                year = int(cleaned)
            elif day is None and len(cleaned) <= 2:
                day = int(cleaned)
            else:
                raise _invalid(phrase)
        elif cleaned.isalpha():
            resolved = to_english_month(cleaned)
            if resolved is not None and month is None:
                month = resolved
        # Mixed tokens are ignored.

    if day is None or month is None:
        raise _invalid(phrase)
    return _build(phrase, day, month, year or default_year)


@dataclass(slots=True)
class DateNormalizer:
    """LLM first, deterministic parsing second."""

    llm: LLMExtractor | None = None

    def _from_llm(self, phrase: str, default_year: int | None) -> TransactionDate | None:
        if self.llm is None:
            return None
        try:
            payload = self.llm.normalize_date(phrase)
        except ExternalServiceError:
            logger.info("date_normalizer_llm_failed phrase=%s", phrase)
            return None
        if payload is None:
            return None
        try:
            parsed = LLMDateResult.model_validate(payload)
        except ValidationError:
            return None
        if parsed.day is None or parsed.month is None or not 1 <= parsed.day <= 31:
            return None
        month = to_english_month(parsed.month)
        if month is None or month not in ENGLISH_MONTHS:
            return None
        try:
            return _build(phrase, parsed.day, month, parsed.year or default_year)
        except UserInputError:
            return None

    def normalize(self, phrase: str, *, default_year: int | None = None) -> TransactionDate:
        """Return the canonical triple or raise ``UserInputError``."""

        from_llm = self._from_llm(phrase, default_year)
        if from_llm is not None:
            return from_llm
        return parse_date_deterministic(phrase, default_year=default_year)

    def normalize_payload(self, value: Any, *, default_year: int | None = None) -> TransactionDate:
        """Normalize a date given as a phrase or as a ``{day, month, year}`` object."""

        if isinstance(value, dict):
            day = value.get("day")
            month = value.get("month")
            year = value.get("year")
            phrase = f"{day} {month}"
            if isinstance(day, str) and day.strip().isdigit():
                day = int(day)
            if not isinstance(day, int) or isinstance(day, bool) or not isinstance(month, str):
                raise _invalid(phrase)
            resolved = to_english_month(month)
            if resolved is None:
                raise _invalid(phrase)
            parsed_year = year if isinstance(year, int) and not isinstance(year, bool) else default_year
            return _build(phrase, day, resolved, parsed_year)
        if isinstance(value, str) and value.strip():
            return self.normalize(value, default_year=default_year)
        raise _invalid(str(value or ""))
