"""Composition root for agent orchestration."""

from __future__ import annotations

from agent.coordinator import IngestionCoordinator
from agent.date_normalizer import DateNormalizer
from agent.intent_extractor import IntentExtractor
from agent.llm_client import LLMExtractor, OpenAIChatClientImpl
from agent.telegram_client import TelegramClient
from backend.factory import build_backend_services
from shared import config


def build_telegram_client() -> TelegramClient:
    token = config.telegram_bot_token()
    assert token is not None, "require_settings() must run first"
    return TelegramClient(token=token, timeout_s=config.http_timeout_s())


def build_coordinator(transport: TelegramClient | None = None) -> IngestionCoordinator:
    """Build an executable coordinator wiring all dependencies."""

    config.require_settings()
    api_key = config.openai_api_key()
    assert api_key is not None

    llm = LLMExtractor(
        client=OpenAIChatClientImpl(api_key=api_key, timeout_s=config.llm_timeout_s()),
        model=config.llm_model(),
    )
    date_normalizer = DateNormalizer(llm=llm)
    backend = build_backend_services()

    return IngestionCoordinator(
        transport=transport or build_telegram_client(),
        intent_extractor=IntentExtractor(date_normalizer=date_normalizer, llm=llm),
        date_normalizer=date_normalizer,
        ledger=backend.ledger,
        backfill=backend.backfill,
        receipt_store=backend.receipt_store,
        folders=backend.folders,
        tmp_dir=config.tmp_dir(),
        llm=llm,
    )
