"""Error taxonomy shared by the ingestion pipeline and its adapters."""

from __future__ import annotations


class BookkeepingError(Exception):
    """Base error carrying a user-facing message."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UserInputError(BookkeepingError):
    """The user sent something that cannot be recorded as-is."""


class IntegrityError(UserInputError):
    """An extraction payload was flagged invalid or is structurally broken."""


class ExternalServiceError(BookkeepingError):
    """A collaborator (chat, sheets, drive, llm, fx) failed."""

    def __init__(self, service: str, message: str) -> None:
        super().__init__(message)
        self.service = service


class ConfigurationError(BookkeepingError):
    """Startup configuration is missing or unusable."""
