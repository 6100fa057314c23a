"""Configuration helpers for environment variables."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from shared.errors import ConfigurationError


logger = logging.getLogger(__name__)


_DEFAULT_LLM_MODEL = "gpt-5"
_DEFAULT_LLM_TIMEOUT_S = 30.0
_DEFAULT_HTTP_TIMEOUT_S = 20.0
_DEFAULT_FX_API_URL = "https://api.frankfurter.app"
_DEFAULT_TMP_DIR = "./tmp"

_REQUIRED_SETTINGS = (
    "TELEGRAM_BOT_TOKEN",
    "GOOGLE_SHEET_ID",
    "GOOGLE_SERVICE_ACCOUNT_KEY",
    "OPENAI_API_KEY",
    "EXPENSES_FOLDER_ID",
    "EARNINGS_FOLDER_ID",
)


def _should_load_dotenv() -> bool:
    """Return whether local dotenv loading should run."""
    app_env = os.getenv("APP_ENV", "dev").strip().lower()
    return app_env in {"dev", "local"}


if _should_load_dotenv():
    load_dotenv()


def get_env(name: str, default: str | None = None) -> str | None:
    """Return a raw environment value or default."""
    return os.getenv(name, default)


def _get_stripped(name: str) -> str | None:
    value = (get_env(name, "") or "").strip()
    return value or None


def _get_float(name: str, default: float) -> float:
    raw_value = (get_env(name, "") or "").strip()
    if not raw_value:
        return default
    try:
        parsed = float(raw_value)
    except ValueError:
        logger.warning("invalid_float_setting name=%s value=%s default=%s", name, raw_value, default)
        return default
    if parsed <= 0:
        return default
    return parsed


def app_env() -> str:
    """Return the current application environment."""
    return (get_env("APP_ENV", "dev") or "dev").strip() or "dev"


def log_level() -> str:
    """Return the logging level name for entrypoints."""
    return (get_env("LOG_LEVEL", "INFO") or "INFO").strip().upper() or "INFO"


def telegram_bot_token() -> str | None:
    """Return the chat transport credential."""
    return _get_stripped("TELEGRAM_BOT_TOKEN")


def telegram_webhook_secret() -> str | None:
    """Return the optional webhook secret token."""
    return _get_stripped("TELEGRAM_WEBHOOK_SECRET")


def sheet_id() -> str | None:
    """Return the spreadsheet document identifier."""
    return _get_stripped("GOOGLE_SHEET_ID")


def google_service_account_info() -> dict[str, Any] | None:
    """Return the parsed service account key.

    The variable holds either a path to a JSON key file or the JSON material
    itself.
    """
    raw_value = _get_stripped("GOOGLE_SERVICE_ACCOUNT_KEY")
    if raw_value is None:
        return None

    if raw_value.startswith("{"):
        material = raw_value
    else:
        key_path = Path(raw_value).expanduser()
        try:
            material = key_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(
                f"GOOGLE_SERVICE_ACCOUNT_KEY file cannot be read: {key_path}"
            ) from exc

    try:
        parsed = json.loads(material)
    except json.JSONDecodeError as exc:
        raise ConfigurationError("GOOGLE_SERVICE_ACCOUNT_KEY is not valid JSON") from exc

    if not isinstance(parsed, dict):
        raise ConfigurationError("GOOGLE_SERVICE_ACCOUNT_KEY must be a JSON object")
    return parsed


def openai_api_key() -> str | None:
    """Return OpenAI API key when configured."""
    return _get_stripped("OPENAI_API_KEY")


def llm_model() -> str:
    """Return configured LLM model with safe default."""
    return (get_env("AGENT_LLM_MODEL", _DEFAULT_LLM_MODEL) or _DEFAULT_LLM_MODEL).strip() or _DEFAULT_LLM_MODEL


def llm_timeout_s() -> float:
    """Return the LLM request timeout in seconds."""
    return _get_float("AGENT_LLM_TIMEOUT_S", _DEFAULT_LLM_TIMEOUT_S)


def http_timeout_s() -> float:
    """Return the timeout used by the chat transport and FX clients."""
    return _get_float("HTTP_TIMEOUT_S", _DEFAULT_HTTP_TIMEOUT_S)


def expenses_folder_id() -> str | None:
    """Return the blob store folder receiving expense receipts."""
    return _get_stripped("EXPENSES_FOLDER_ID")


def earnings_folder_id() -> str | None:
    """Return the blob store folder receiving earning receipts."""
    return _get_stripped("EARNINGS_FOLDER_ID")


def fx_api_url() -> str:
    """Return the FX rate service base URL without trailing slash."""
    value = _get_stripped("FX_API_URL") or _DEFAULT_FX_API_URL
    return value.rstrip("/")


def tmp_dir() -> Path:
    """Return the scratch directory, creating it when missing."""
    path = Path(_get_stripped("TMP_DIR") or _DEFAULT_TMP_DIR).expanduser()
    path.mkdir(parents=True, exist_ok=True)
    return path


def missing_required_settings() -> list[str]:
    """Return names of required environment variables that are unset."""
    return [name for name in _REQUIRED_SETTINGS if _get_stripped(name) is None]


def require_settings() -> None:
    """Fail fast when the process cannot serve messages."""
    missing = missing_required_settings()
    if missing:
        raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")
    # Parsing validates path/JSON material up front.
    google_service_account_info()
