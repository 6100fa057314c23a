"""Build user-facing chat replies."""

from __future__ import annotations

from backend.services.ledger_service import RecordResult
from shared.errors import BookkeepingError, UserInputError
from shared.models import Transaction, TransactionType, format_amount

CANONICAL_EXAMPLE = "spent 6.66 for capcut on june 13"

UNRECOGNIZED_REPLY = (
    "WARNING: I couldn't understand the transaction. "
    f"Try something like: \"{CANONICAL_EXAMPLE}\"."
)
CLARIFICATION_QUESTION = (
    "I read the receipt but can't tell what kind of transaction it is. "
    "Reply with expense, earning, or paypal fee."
)
CLARIFICATION_REMINDER = (
    "WARNING: I'm still waiting for the type of the last receipt. "
    "Reply with exactly one of: expense, earning, paypal fee."
)
HELP_REPLY = (
    "Send a transaction as text, e.g. \"spent 6.66 for capcut on june 13\", "
    "\"earned 200 USD from ACME on 5 June\" or \"paypal fee 1.20 USD on 5 June\".\n"
    "Send a receipt photo (add expense, earning or paypal fee as caption if you like).\n"
    "Use /convert_missing_usd <month> to fill in CAD amounts next to USD ones."
)
UNEXPECTED_ERROR_REPLY = "ERROR: Unexpected failure while processing your message."

_TYPE_LABELS = {
    TransactionType.EXPENSE: "expense",
    TransactionType.EARNING: "earning",
    TransactionType.FEE: "paypal fee",
}


def warning(message: str) -> str:
    return f"WARNING: {message}"


def error(message: str) -> str:
    return f"ERROR: {message}"


def reply_for_error(exc: BookkeepingError) -> str:
    """Map a pipeline error to its WARNING/ERROR reply."""

    if isinstance(exc, UserInputError):
        return warning(exc.message)
    return error(exc.message)


def recorded_reply(transaction: Transaction, result: RecordResult, *, from_receipt: bool = False) -> str:
    amount = format_amount(transaction.amount)
    label = _TYPE_LABELS[transaction.type]
    prefix = "Added receipt" if from_receipt else "Added"
    return (
        f"{prefix}: {label} of {amount} {transaction.currency.value} "
        f"for {transaction.display_name} on {result.date_text} ({result.tab})"
    )
