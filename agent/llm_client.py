"""LLM-backed extraction over OpenAI chat completions."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Protocol

from shared import config
from shared.errors import ExternalServiceError


logger = logging.getLogger(__name__)

_JSON_OBJECT_FORMAT = {"type": "json_object"}

_DATE_PROMPT = (
    "You normalize short date phrases written in English or French. "
    'Reply with JSON only: {"day": int|null, "month": English month name|null, "year": int|null}. '
    "Use null for anything not present in the phrase."
)
_CONVERSION_PROMPT = (
    "You classify bookkeeping chat messages. Decide whether the user asks to convert "
    "or fill in missing USD amounts of a spreadsheet month tab. "
    'Reply with JSON only: {"isConversionRequest": bool, "month": English month name|null}.'
)
_TRANSACTION_PROMPT = (
    "You extract a single bookkeeping transaction from a chat message. "
    "Types: expense (spent, paid, bought), earning (earned, revenue, received), "
    "fee (PayPal or payment processor fee). "
    'Reply with JSON only: {"valid": bool, "type": "expense"|"earning"|"fee", '
    '"amount": number, "currency": "CAD"|"USD", "name": string, "date": string}. '
    "currency is CAD unless USD is stated. name is the vendor or payer. "
    "date is the date phrase as written (e.g. '13 June'), empty when absent. "
    "Set valid to false when the message is not a transaction."
)
_RECEIPT_PROMPT = (
    "You read a photographed receipt or invoice. "
    'Reply with JSON only: {"valid": bool, "type": "expense"|"earning"|"fee"|null, '
    '"amount": number, "currency": "CAD"|"USD", "name": string, '
    '"date": {"day": int, "month": English month name, "year": int|null}}. '
    "amount is the total paid. name is the merchant or payer. "
    "Leave type null unless the document makes it unambiguous. "
    "Set valid to false when the image is not a receipt."
)


class OpenAIChatClient(Protocol):
    """Abstraction over OpenAI chat completion for easy mocking in tests."""

    def create_chat_completion(
        self,
        model: str,
        messages: list[dict[str, Any]],
        response_format: dict[str, Any],
    ) -> dict[str, Any]:
        """Create a chat completion payload."""


@dataclass(slots=True)
class OpenAIChatClientImpl:
    """Concrete OpenAI chat client wrapper."""

    api_key: str
    timeout_s: float | None = 30.0

    def create_chat_completion(
        self,
        model: str,
        messages: list[dict[str, Any]],
        response_format: dict[str, Any],
    ) -> dict[str, Any]:
        from openai import OpenAI

        client_kwargs: dict[str, Any] = {"api_key": self.api_key}
        if self.timeout_s is not None:
            client_kwargs["timeout"] = self.timeout_s

        client = OpenAI(**client_kwargs)
        response = client.chat.completions.create(
            model=model,
            messages=messages,
            response_format=response_format,
        )
        return response.model_dump(mode="json")


def _message_content(response: dict[str, Any]) -> str | None:
    choices = response.get("choices") or []
    first_choice = choices[0] if choices else {}
    message = first_choice.get("message") if isinstance(first_choice, dict) else {}
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    return content if isinstance(content, str) else None


def _strip_code_fence(content: str) -> str:
    stripped = content.strip()
    if stripped.startswith("```"):
        stripped = stripped.strip("`")
        if stripped.lower().startswith("json"):
            stripped = stripped[4:]
    return stripped.strip()


@dataclass(slots=True)
class LLMExtractor:
    """Issue the date, conversion, transaction and receipt prompts."""

    client: OpenAIChatClient
    model: str = field(default_factory=config.llm_model)

    def _complete_json(self, messages: list[dict[str, Any]], purpose: str) -> dict[str, Any] | None:
        try:
            response = self.client.create_chat_completion(
                model=self.model,
                messages=messages,
                response_format=_JSON_OBJECT_FORMAT,
            )
        except ExternalServiceError:
            raise
        except Exception as exc:
            logger.warning("llm_request_failed purpose=%s error=%s", purpose, exc)
            raise ExternalServiceError("llm", f"The language model request failed ({purpose}).") from exc

        content = _message_content(response)
        if not content:
            logger.info("llm_empty_content purpose=%s", purpose)
            return None
        try:
            parsed = json.loads(_strip_code_fence(content))
        except json.JSONDecodeError:
            logger.info("llm_invalid_json purpose=%s", purpose)
            return None
        if not isinstance(parsed, dict):
            logger.info("llm_non_object_json purpose=%s type=%s", purpose, type(parsed).__name__)
            return None
        return parsed

    def normalize_date(self, phrase: str) -> dict[str, Any] | None:
        return self._complete_json(
            [
                {"role": "system", "content": _DATE_PROMPT},
                {"role": "user", "content": phrase},
            ],
            "date",
        )

    def classify_conversion(self, message: str) -> dict[str, Any] | None:
        return self._complete_json(
            [
                {"role": "system", "content": _CONVERSION_PROMPT},
                {"role": "user", "content": message},
            ],
            "conversion",
        )

    def extract_transaction(self, message: str, *, today: date | None = None) -> dict[str, Any] | None:
        reference = (today or date.today()).isoformat()
        return self._complete_json(
            [
                {"role": "system", "content": f"{_TRANSACTION_PROMPT} Today is {reference}."},
                {"role": "user", "content": message},
            ],
            "transaction",
        )

    def extract_receipt(self, image_base64: str, caption: str | None = None) -> dict[str, Any] | None:
        user_content: list[dict[str, Any]] = [
            {"type": "image_url", "image_url": {"url": f"data:image/jpeg;base64,{image_base64}"}},
        ]
        if caption and caption.strip():
            user_content.insert(0, {"type": "text", "text": f"Caption from the user: {caption.strip()}"})
        return self._complete_json(
            [
                {"role": "system", "content": _RECEIPT_PROMPT},
                {"role": "user", "content": user_content},
            ],
            "receipt",
        )
