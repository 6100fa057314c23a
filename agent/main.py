"""Long-poll entrypoint: ``python -m agent.main``."""

from __future__ import annotations

import logging
import sys
import time

from pydantic import ValidationError

from agent.coordinator import IngestionCoordinator
from agent.factory import build_coordinator, build_telegram_client
from agent.telegram_client import TelegramClient, message_from_update
from shared import config
from shared.errors import ConfigurationError, ExternalServiceError
from shared.models import IncomingMessage


logger = logging.getLogger(__name__)

_RETRY_DELAY_S = 5.0


def poll_once(client: TelegramClient, coordinator: IngestionCoordinator, offset: int | None) -> int | None:
    """Fetch one batch of updates, handle them in order, return the next offset."""

    updates = client.get_updates(offset)
    for update in updates:
        update_id = update.get("update_id")
        if isinstance(update_id, int):
            offset = update_id + 1
        fields = message_from_update(update)
        if fields is None:
            continue
        try:
            message = IncomingMessage.model_validate(fields)
        except ValidationError:
            logger.info("telegram_update_invalid update_id=%s", update_id)
            continue
        coordinator.handle_message(message)
    return offset


def run_polling() -> None:
    config.require_settings()
    client = build_telegram_client()
    coordinator = build_coordinator(transport=client)
    logger.info("polling_started")

    offset: int | None = None
    while True:
        try:
            offset = poll_once(client, coordinator, offset)
        except ExternalServiceError:
            logger.exception("polling_failed offset=%s", offset)
            time.sleep(_RETRY_DELAY_S)


def main() -> int:
    logging.basicConfig(
        level=config.log_level(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    try:
        run_polling()
    except ConfigurationError as exc:
        logger.error("startup_failed reason=%s", exc.message)
        return 1
    except KeyboardInterrupt:
        logger.info("polling_stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
