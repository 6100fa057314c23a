"""Tests for the shared transaction contracts."""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from shared.models import (
    Currency,
    IncomingMessage,
    Transaction,
    TransactionDate,
    TransactionExtraction,
    TransactionType,
    format_amount,
)


def _date() -> TransactionDate:
    return TransactionDate(day=13, month="juin", year=2025)


def test_transaction_date_normalizes_french_month_and_formats() -> None:
    value = _date()

    assert value.month == "June"
    assert value.formatted() == "6/13/2025"
    assert value.to_date() == date(2025, 6, 13)
    assert TransactionDate.from_date(date(2025, 6, 13)) == value


def test_transaction_date_rejects_impossible_day_on_conversion() -> None:
    value = TransactionDate(day=31, month="February", year=2025)

    with pytest.raises(ValueError):
        value.to_date()


def test_transaction_date_rejects_unknown_month() -> None:
    with pytest.raises(ValidationError):
        TransactionDate(day=1, month="Smarch", year=2025)


def test_transaction_defaults_currency_to_cad_and_rounds_amount() -> None:
    transaction = Transaction(type="expense", amount="6.666", currency=None, name="capcut", date=_date())

    assert transaction.currency == Currency.CAD
    assert transaction.amount == Decimal("6.67")


@pytest.mark.parametrize("amount", ["0", "-3", "0.001"])
def test_transaction_rejects_non_positive_amount(amount: str) -> None:
    with pytest.raises(ValidationError):
        Transaction(type="expense", amount=amount, date=_date())


def test_transaction_name_placeholders_are_blank() -> None:
    transaction = Transaction(type="earning", amount=5, name="undefined", date=_date())

    assert transaction.name == ""
    assert transaction.display_name == "Unknown"


def test_format_amount_drops_zero_cents() -> None:
    assert format_amount(Decimal("200")) == "200"
    assert format_amount(Decimal("1.2")) == "1.20"
    assert format_amount(Decimal("6.66")) == "6.66"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("paypal_fee", TransactionType.FEE),
        ("PayPal fee", TransactionType.FEE),
        ("fees", TransactionType.FEE),
        ("Expenses", TransactionType.EXPENSE),
        ("earning", TransactionType.EARNING),
        ("refund", None),
        ("", None),
    ],
)
def test_extraction_type_normalization(raw: str, expected: TransactionType | None) -> None:
    assert TransactionExtraction(type=raw).type == expected


def test_extraction_accepts_string_or_object_dates() -> None:
    assert TransactionExtraction(date="13 June").date == "13 June"
    assert TransactionExtraction(date={"day": 1, "month": "May"}).date == {"day": 1, "month": "May"}


def test_incoming_message_picks_largest_photo() -> None:
    message = IncomingMessage.model_validate(
        {"chat_id": 7, "photo": [{"file_id": "small", "width": 90}, {"file_id": "big", "width": 1280}]}
    )

    assert message.has_photo is True
    assert message.largest_photo is not None
    assert message.largest_photo.file_id == "big"
