"""Tests for shared configuration helpers."""

import json
from pathlib import Path

import pytest

from shared import config
from shared.errors import ConfigurationError


_REQUIRED = {
    "TELEGRAM_BOT_TOKEN": "token",
    "GOOGLE_SHEET_ID": "sheet",
    "GOOGLE_SERVICE_ACCOUNT_KEY": '{"type": "service_account"}',
    "OPENAI_API_KEY": "sk-test",
    "EXPENSES_FOLDER_ID": "folder-expenses",
    "EARNINGS_FOLDER_ID": "folder-earnings",
}


def _set_required(monkeypatch) -> None:
    for name, value in _REQUIRED.items():
        monkeypatch.setenv(name, value)


def test_llm_model_uses_default_when_missing(monkeypatch) -> None:
    monkeypatch.delenv("AGENT_LLM_MODEL", raising=False)

    assert config.llm_model() == "gpt-5"


def test_float_settings_fall_back_on_garbage(monkeypatch) -> None:
    monkeypatch.setenv("AGENT_LLM_TIMEOUT_S", "soon")
    monkeypatch.setenv("HTTP_TIMEOUT_S", "7.5")

    assert config.llm_timeout_s() == 30.0
    assert config.http_timeout_s() == 7.5


def test_fx_api_url_strips_trailing_slash(monkeypatch) -> None:
    monkeypatch.setenv("FX_API_URL", "https://fx.example/ ")

    assert config.fx_api_url() == "https://fx.example"


def test_tmp_dir_is_created(monkeypatch, tmp_path: Path) -> None:
    target = tmp_path / "scratch"
    monkeypatch.setenv("TMP_DIR", str(target))

    assert config.tmp_dir() == target
    assert target.is_dir()


def test_service_account_from_inline_json_or_path(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("GOOGLE_SERVICE_ACCOUNT_KEY", '{"client_email": "bot@example.iam"}')
    assert config.google_service_account_info() == {"client_email": "bot@example.iam"}

    key_file = tmp_path / "key.json"
    key_file.write_text(json.dumps({"client_email": "file@example.iam"}), encoding="utf-8")
    monkeypatch.setenv("GOOGLE_SERVICE_ACCOUNT_KEY", str(key_file))
    assert config.google_service_account_info() == {"client_email": "file@example.iam"}


@pytest.mark.parametrize("value", ["{not json", "/does/not/exist.json", "[1]"])
def test_broken_service_account_is_a_configuration_error(monkeypatch, value: str) -> None:
    monkeypatch.setenv("GOOGLE_SERVICE_ACCOUNT_KEY", value)

    with pytest.raises(ConfigurationError):
        config.google_service_account_info()


def test_require_settings_lists_missing_names(monkeypatch) -> None:
    _set_required(monkeypatch)
    monkeypatch.delenv("OPENAI_API_KEY")
    monkeypatch.setenv("EARNINGS_FOLDER_ID", "  ")

    assert config.missing_required_settings() == ["OPENAI_API_KEY", "EARNINGS_FOLDER_ID"]
    with pytest.raises(ConfigurationError) as exc_info:
        config.require_settings()

    assert exc_info.value.message == "Missing required settings: OPENAI_API_KEY, EARNINGS_FOLDER_ID"


def test_require_settings_passes_when_complete(monkeypatch) -> None:
    _set_required(monkeypatch)

    config.require_settings()
