"""Tests for deterministic message parsing."""

import pytest

from agent.deterministic_nlu import (
    detect_type_keywords,
    mentions_all_months,
    parse_conversion_intent,
    parse_slash_command,
    parse_transaction_text,
    single_type_keyword,
)
from shared.models import TransactionType


@pytest.mark.parametrize(
    ("text", "month"),
    [
        ("convert usd for june", "June"),
        ("USD to convert in juillet", "July"),
        ("please update the USD amounts of May", "May"),
        ("missing usd in août", "August"),
        ("usd missing for december", "December"),
    ],
)
def test_conversion_patterns_with_month(text: str, month: str) -> None:
    assert parse_conversion_intent(text) == month


def test_conversion_without_month_is_not_an_intent() -> None:
    assert parse_conversion_intent("convert usd") is None
    assert parse_conversion_intent("convert all usd") is None


def test_all_without_month_is_detected() -> None:
    assert mentions_all_months("convert all the usd") is True
    assert mentions_all_months("convert all usd for june") is False


def test_type_keywords() -> None:
    assert detect_type_keywords("PayPal fees") == {TransactionType.FEE}
    assert single_type_keyword("it is an Expense") == TransactionType.EXPENSE
    assert single_type_keyword("earnings") == TransactionType.EARNING
    assert single_type_keyword("expense or earning") is None
    assert single_type_keyword("no idea") is None


def test_slash_command_parsing() -> None:
    assert parse_slash_command("/convert_missing_usd june") == ("convert_missing_usd", "june")
    assert parse_slash_command("/help@ledger_bot") == ("help", "")
    assert parse_slash_command("convert usd june") is None


def test_transaction_text_canonical_example() -> None:
    assert parse_transaction_text("spent 6.66 for capcut on june 13") == {
        "valid": True,
        "type": "expense",
        "amount": "6.66",
        "currency": "CAD",
        "name": "capcut",
        "date": "june 13",
    }


def test_transaction_text_usd_earning_and_fee() -> None:
    earning = parse_transaction_text("earned 200 USD from ACME on 5 June")
    fee = parse_transaction_text("paypal fee 1.20 USD on 5 June")

    assert earning is not None
    assert (earning["type"], earning["currency"], earning["name"], earning["date"]) == (
        "earning",
        "USD",
        "ACME",
        "5 June",
    )
    assert fee is not None
    assert (fee["type"], fee["amount"], fee["name"], fee["date"]) == ("fee", "1.20", "", "5 June")


def test_transaction_text_without_date_is_rejected() -> None:
    assert parse_transaction_text("spent 6.66 for capcut") is None
    assert parse_transaction_text("hello there") is None
