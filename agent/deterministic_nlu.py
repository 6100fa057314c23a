"""Deterministic natural-language parsing for bookkeeping messages."""

from __future__ import annotations

import re

from shared.models import Currency, TransactionType
from shared.months import find_month_in_text

_CONVERSION_PATTERNS = (
    re.compile(r"convert.*usd", re.IGNORECASE | re.DOTALL),
    re.compile(r"usd.*convert", re.IGNORECASE | re.DOTALL),
    re.compile(r"update.*usd", re.IGNORECASE | re.DOTALL),
    re.compile(r"missing.*usd", re.IGNORECASE | re.DOTALL),
    re.compile(r"usd.*missing", re.IGNORECASE | re.DOTALL),
)
_ALL_TOKEN = re.compile(r"\ball\b", re.IGNORECASE)

_TYPE_KEYWORDS: tuple[tuple[re.Pattern[str], TransactionType], ...] = (
    (re.compile(r"\bpaypal[\s_]+fees?\b|\bfees?\b", re.IGNORECASE), TransactionType.FEE),
    (re.compile(r"\bexpenses?\b", re.IGNORECASE), TransactionType.EXPENSE),
    (re.compile(r"\bearnings?\b", re.IGNORECASE), TransactionType.EARNING),
)

_SLASH_COMMAND = re.compile(r"^/(?P<command>[a-z_]+)(?:@\w+)?(?:\s+(?P<argument>.*))?$", re.IGNORECASE | re.DOTALL)

_TRANSACTION_PATTERN = re.compile(
    r"(?P<verb>paypal\s+fees?|spend|spent|expense|paid|bought|earning|earned|revenue|received)"
    r"\s+(?:of\s+)?\$?(?P<amount>\d+(?:\.\d{1,2})?)\s*\$?\s*(?P<currency>usd|cad)?"
    r"(?:\s+(?:for|from|at|to)\s+(?P<name>.+?))?"
    r"(?:\s+on\s+(?P<date>.+?))?\s*[.!]?$",
    re.IGNORECASE,
)
_EXPENSE_VERBS = {"spend", "spent", "expense", "paid", "bought"}
_EARNING_VERBS = {"earning", "earned", "revenue", "received"}


def is_conversion_request(text: str) -> bool:
    return any(pattern.search(text or "") for pattern in _CONVERSION_PATTERNS)


def parse_conversion_intent(text: str) -> str | None:
    """Return the English month of a USD conversion request, or None.

    ``all`` without a specific month never yields a conversion.
    """

    if not is_conversion_request(text):
        return None
    month = find_month_in_text(text)
    if month is None:
        return None
    return month


def mentions_all_months(text: str) -> bool:
    return bool(_ALL_TOKEN.search(text or "")) and find_month_in_text(text) is None


def detect_type_keywords(text: str) -> set[TransactionType]:
    """Return every transaction type named in the text."""

    return {transaction_type for pattern, transaction_type in _TYPE_KEYWORDS if pattern.search(text or "")}


def single_type_keyword(text: str) -> TransactionType | None:
    found = detect_type_keywords(text)
    if len(found) != 1:
        return None
    return next(iter(found))


def parse_slash_command(text: str) -> tuple[str, str] | None:
    """Split ``/command@bot argument`` into ``(command, argument)``."""

    match = _SLASH_COMMAND.match((text or "").strip())
    if match is None:
        return None
    return match.group("command").lower(), (match.group("argument") or "").strip()


def parse_transaction_text(text: str) -> dict[str, object] | None:
    """Regex parse of messages like ``spent 6.66 for capcut on june 13``.

    Returns an extraction payload shaped like the LLM transaction output.
    """

    match = _TRANSACTION_PATTERN.search((text or "").strip())
    if match is None:
        return None

    verb = re.sub(r"\s+", " ", match.group("verb").lower())
    if verb.startswith("paypal"):
        transaction_type = TransactionType.FEE
    elif verb in _EXPENSE_VERBS:
        transaction_type = TransactionType.EXPENSE
    elif verb in _EARNING_VERBS:
        transaction_type = TransactionType.EARNING
    else:
        return None

    currency = (match.group("currency") or Currency.CAD.value).upper()
    name = (match.group("name") or "").strip()
    date_phrase = (match.group("date") or "").strip()
    if not date_phrase and name:
        # "paypal fee 1.20 USD on 5 June" has no party; a trailing date may sit in the name.
        split = re.split(r"\s+on\s+", name, maxsplit=1, flags=re.IGNORECASE)
        if len(split) == 2:
            name, date_phrase = split[0].strip(), split[1].strip()
    if not date_phrase:
        return None

    return {
        "valid": True,
        "type": transaction_type.value,
        "amount": match.group("amount"),
        "currency": currency,
        "name": name,
        "date": date_phrase,
    }
