"""FastAPI entrypoint receiving Telegram webhook updates."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any

from fastapi import FastAPI, Header, HTTPException
from fastapi.requests import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, ValidationError

from agent.coordinator import IngestionCoordinator
from agent.factory import build_coordinator
from agent.telegram_client import message_from_update
from shared import config as _config
from shared.models import IncomingMessage


logger = logging.getLogger(__name__)


class TelegramUpdate(BaseModel):
    """Subset of a Telegram ``Update`` the bot cares about."""

    model_config = ConfigDict(extra="allow")

    update_id: int
    message: dict[str, Any] | None = None


class WebhookResponse(BaseModel):
    ok: bool = True
    handled: bool


@lru_cache(maxsize=1)
def get_coordinator() -> IngestionCoordinator:
    """Create and cache the coordinator once per process."""

    coordinator = build_coordinator()
    logger.info("using_coordinator=%s.%s", coordinator.__class__.__module__, coordinator.__class__.__name__)
    return coordinator


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Build the coordinator before serving so missing settings stop the process."""

    get_coordinator()
    yield


app = FastAPI(title="Bookkeeping Bot Webhook", lifespan=lifespan)


@app.middleware("http")
async def log_http_requests(request: Request, call_next):
    """Log incoming requests, HTTP status codes and unexpected errors."""

    logger.info("http_request_received method=%s path=%s", request.method, request.url.path)
    try:
        response = await call_next(request)
    except Exception:
        logger.exception(
            "http_request_failed method=%s path=%s",
            request.method,
            request.url.path,
        )
        raise

    logger.info(
        "http_response_sent method=%s path=%s status_code=%s",
        request.method,
        request.url.path,
        response.status_code,
    )
    return response


@app.exception_handler(Exception)
async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
    """Return a JSON 500 response for unhandled exceptions."""

    logger.exception(
        "unhandled_exception method=%s path=%s exception_type=%s message=%s",
        request.method,
        request.url.path,
        type(exc).__name__,
        str(exc),
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


@app.get("/health")
def health() -> dict[str, str]:
    """Healthcheck endpoint."""

    return {"status": "ok"}


@app.post("/telegram/webhook", response_model=WebhookResponse)
def telegram_webhook(
    update: TelegramUpdate,
    x_telegram_bot_api_secret_token: str | None = Header(default=None),
) -> WebhookResponse:
    """Handle one Telegram update through the ingestion coordinator."""

    expected_secret = _config.telegram_webhook_secret()
    if expected_secret and x_telegram_bot_api_secret_token != expected_secret:
        raise HTTPException(status_code=401, detail="Invalid webhook secret")

    fields = message_from_update(update.model_dump())
    if fields is None:
        logger.info("telegram_update_ignored update_id=%s", update.update_id)
        return WebhookResponse(handled=False)

    try:
        message = IncomingMessage.model_validate(fields)
    except ValidationError:
        logger.info("telegram_update_invalid update_id=%s", update.update_id)
        return WebhookResponse(handled=False)

    get_coordinator().handle_message(message)
    return WebhookResponse(handled=True)
