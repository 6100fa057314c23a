"""Pydantic contracts shared across backend and agent."""

from __future__ import annotations

import calendar
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared.months import ENGLISH_MONTHS, month_number, to_english_month


_CENT = Decimal("0.01")


class TransactionType(str, Enum):
    """Column group a transaction is recorded into."""

    EXPENSE = "expense"
    EARNING = "earning"
    FEE = "fee"


class Currency(str, Enum):
    CAD = "CAD"
    USD = "USD"


def quantize_amount(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def format_amount(value: Decimal) -> str:
    """Render an amount with cents, dropping a zero fraction (``200``, ``1.20``)."""

    quantized = quantize_amount(value)
    if quantized == quantized.to_integral_value():
        return str(quantized.to_integral_value())
    return format(quantized, "f")


def _default_currency(value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        return Currency.CAD
    if isinstance(value, str):
        return value.strip().upper()
    return value


def _coerce_amount(value: Any) -> Any:
    if isinstance(value, str):
        cleaned = value.replace("$", "").replace(",", "").strip()
        try:
            return Decimal(cleaned)
        except InvalidOperation:
            return value
    if isinstance(value, float):
        return Decimal(str(value))
    return value


class TransactionDate(BaseModel):
    """Canonical day/month/year triple."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    day: int = Field(ge=1, le=31)
    month: str
    year: int = Field(default_factory=lambda: date.today().year, ge=1900, le=2999)

    @field_validator("month", mode="before")
    @classmethod
    def normalize_month(cls, value: Any) -> str:
        english = to_english_month(value) if isinstance(value, str) else None
        if english is None or english not in ENGLISH_MONTHS:
            raise ValueError(f"Unknown month: {value!r}")
        return english

    def to_date(self) -> date:
        """Return the calendar date, raising ``ValueError`` when impossible."""

        month = month_number(self.month)
        last_day = calendar.monthrange(self.year, month)[1]
        if self.day > last_day:
            raise ValueError(f"{self.month} {self.year} has only {last_day} days")
        return date(self.year, month, self.day)

    def formatted(self) -> str:
        """Render the column-0 string (``m/d/yyyy``)."""

        return f"{month_number(self.month)}/{self.day}/{self.year}"

    @classmethod
    def from_date(cls, value: date) -> TransactionDate:
        return cls(day=value.day, month=ENGLISH_MONTHS[value.month - 1], year=value.year)


class Transaction(BaseModel):
    """Canonical transaction built from a text message or a receipt."""

    model_config = ConfigDict(extra="forbid")

    type: TransactionType
    amount: Decimal = Field(gt=0)
    currency: Currency = Currency.CAD
    name: str = ""
    date: TransactionDate
    receipt_link: str | None = None
    valid: bool = True

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, value: Any) -> Any:
        return _coerce_amount(value)

    @field_validator("amount")
    @classmethod
    def round_amount(cls, value: Decimal) -> Decimal:
        quantized = quantize_amount(value)
        if quantized <= 0:
            raise ValueError("amount must be at least one cent")
        return quantized

    @field_validator("currency", mode="before")
    @classmethod
    def default_currency(cls, value: Any) -> Any:
        return _default_currency(value)

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, value: Any) -> str:
        if value is None:
            return ""
        text = str(value).strip()
        if text.lower() in {"undefined", "null", "none"}:
            return ""
        return text

    @property
    def display_name(self) -> str:
        return self.name or "Unknown"


class PhotoSize(BaseModel):
    """One resolution of a chat photo."""

    model_config = ConfigDict(extra="ignore")

    file_id: str
    width: int | None = None
    height: int | None = None
    file_size: int | None = None


class IncomingMessage(BaseModel):
    """Chat transport event handed to the ingestion coordinator."""

    model_config = ConfigDict(extra="ignore")

    chat_id: int
    text: str | None = None
    caption: str | None = None
    photo: list[PhotoSize] = Field(default_factory=list)

    @property
    def has_photo(self) -> bool:
        return bool(self.photo)

    @property
    def largest_photo(self) -> PhotoSize | None:
        return self.photo[-1] if self.photo else None


class LLMDateResult(BaseModel):
    """JSON shape returned by the date normalization prompt."""

    model_config = ConfigDict(extra="ignore")

    day: int | None = None
    month: str | None = None
    year: int | None = None


class ConversionClassification(BaseModel):
    """JSON shape returned by the conversion classification prompt."""

    model_config = ConfigDict(extra="ignore")

    isConversionRequest: bool = False
    month: str | None = None


class TransactionExtraction(BaseModel):
    """Untrusted transaction payload returned by text parsing or receipt OCR."""

    model_config = ConfigDict(extra="ignore")

    valid: bool = False
    type: TransactionType | None = None
    amount: Decimal | None = None
    currency: Currency = Currency.CAD
    name: str | None = None
    date: str | dict[str, Any] | None = None

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        lowered = value.strip().lower().replace(" ", "_")
        if not lowered:
            return None
        if lowered in {"paypal_fee", "fees"}:
            return TransactionType.FEE
        if lowered in {"expenses", "earnings"}:
            lowered = lowered[:-1]
        if lowered not in {member.value for member in TransactionType}:
            return None
        return lowered

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, value: Any) -> Any:
        return _coerce_amount(value)

    @field_validator("currency", mode="before")
    @classmethod
    def default_currency(cls, value: Any) -> Any:
        return _default_currency(value)
