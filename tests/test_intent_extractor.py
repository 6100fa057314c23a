"""Tests for text intent extraction passes."""

from datetime import date
from decimal import Decimal

import pytest

from agent.answer_builder import UNRECOGNIZED_REPLY
from agent.date_normalizer import DateNormalizer
from agent.intent_extractor import ConvertIntent, IntentExtractor, RecordIntent, UnrecognizedIntent
from agent.llm_client import LLMExtractor
from shared.errors import ExternalServiceError
from shared.models import Currency, TransactionType
from tests.fakes import ScriptedChatClient


TODAY = date(2025, 6, 20)


def _extractor(client: ScriptedChatClient | None) -> IntentExtractor:
    llm = LLMExtractor(client=client, model="test-model") if client is not None else None
    return IntentExtractor(date_normalizer=DateNormalizer(llm=llm), llm=llm)


def test_regex_conversion_pass_skips_the_llm() -> None:
    client = ScriptedChatClient()

    intent = _extractor(client).extract("convert usd for juin", today=TODAY)

    assert intent == ConvertIntent(month="June")
    assert client.calls == []


def test_all_months_request_is_not_a_conversion() -> None:
    client = ScriptedChatClient(conversion={"isConversionRequest": True, "month": "June"})

    intent = _extractor(client).extract("convert all usd", today=TODAY)

    assert not isinstance(intent, ConvertIntent)
    assert "conversion" not in client.purposes()


def test_llm_conversion_pass() -> None:
    client = ScriptedChatClient(conversion={"isConversionRequest": True, "month": "juillet"})

    intent = _extractor(client).extract("can you fix the dollar amounts of july?", today=TODAY)

    assert intent == ConvertIntent(month="July")


def test_llm_transaction_pass_defaults_currency_to_cad() -> None:
    client = ScriptedChatClient(
        conversion={"isConversionRequest": False, "month": None},
        transaction={"valid": True, "type": "expense", "amount": 6.66, "name": "capcut", "date": "june 13"},
    )

    intent = _extractor(client).extract("spent 6.66 for capcut on june 13", today=TODAY)

    assert isinstance(intent, RecordIntent)
    transaction = intent.transaction
    assert transaction.type == TransactionType.EXPENSE
    assert transaction.amount == Decimal("6.66")
    assert transaction.currency == Currency.CAD
    assert transaction.name == "capcut"
    assert transaction.date.formatted() == "6/13/2025"


def test_invalid_llm_payload_is_unrecognized() -> None:
    client = ScriptedChatClient(transaction={"valid": False})

    intent = _extractor(client).extract("what a lovely day", today=TODAY)

    assert isinstance(intent, UnrecognizedIntent)
    assert intent.reply == UNRECOGNIZED_REPLY


def test_regex_fallback_when_llm_is_down() -> None:
    client = ScriptedChatClient(fail=True)

    intent = _extractor(client).extract("earned 200 USD from ACME on 5 June", today=TODAY)

    assert isinstance(intent, RecordIntent)
    assert intent.transaction.currency == Currency.USD
    assert intent.transaction.amount == Decimal("200.00")


def test_llm_failure_surfaces_when_fallback_cannot_parse() -> None:
    client = ScriptedChatClient(fail=True)

    with pytest.raises(ExternalServiceError):
        _extractor(client).extract("what a lovely day", today=TODAY)


def test_regex_only_extraction_without_llm() -> None:
    intent = _extractor(None).extract("paypal fee 1.20 USD on 5 June", today=TODAY)

    assert isinstance(intent, RecordIntent)
    assert intent.transaction.type == TransactionType.FEE
    assert intent.transaction.date.formatted() == "6/5/2025"
