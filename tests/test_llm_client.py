"""Tests for LLM prompt issuing and response parsing."""

import pytest

from agent.llm_client import LLMExtractor
from shared.errors import ExternalServiceError
from tests.fakes import ScriptedChatClient


def test_json_content_is_parsed() -> None:
    client = ScriptedChatClient(date={"day": 13, "month": "June", "year": None})

    assert LLMExtractor(client=client, model="m").normalize_date("13 juin") == {
        "day": 13,
        "month": "June",
        "year": None,
    }
    assert client.calls[0]["model"] == "m"
    assert client.calls[0]["response_format"] == {"type": "json_object"}


def test_code_fenced_json_is_accepted() -> None:
    client = ScriptedChatClient(conversion='```json\n{"isConversionRequest": true, "month": "May"}\n```')

    assert LLMExtractor(client=client, model="m").classify_conversion("usd may") == {
        "isConversionRequest": True,
        "month": "May",
    }


@pytest.mark.parametrize("content", [None, "not json", "[1, 2]"])
def test_unusable_content_returns_none(content: str | None) -> None:
    client = ScriptedChatClient(transaction=content)

    assert LLMExtractor(client=client, model="m").extract_transaction("spent 3") is None


def test_client_failure_is_wrapped() -> None:
    client = ScriptedChatClient(fail=True)

    with pytest.raises(ExternalServiceError) as exc_info:
        LLMExtractor(client=client, model="m").extract_receipt("aGVsbG8=")

    assert exc_info.value.service == "llm"


def test_receipt_prompt_carries_image_and_caption() -> None:
    client = ScriptedChatClient(receipt={"valid": True})

    LLMExtractor(client=client, model="m").extract_receipt("aGVsbG8=", caption=" earning ")

    user_content = client.calls[0]["messages"][1]["content"]
    assert user_content[0] == {"type": "text", "text": "Caption from the user: earning"}
    assert user_content[1]["image_url"]["url"] == "data:image/jpeg;base64,aGVsbG8="
