"""Configuration and logging helper tests."""

from __future__ import annotations

import logging
import os

import pytest

from config.settings import AppConfig, load_config
from modules.services.key_gate import ApiKeyGate
from modules.utils.logging import setup_logging

ENV_NAMES = (
    "GEMINI_API_KEY",
    "API_KEY",
    "GOOGLE_API_KEY",
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "CHAT_BACKEND",
    "CHAT_MODEL",
    "OPENAI_MODEL",
    "REQUEST_TIMEOUT_MS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # load_config writes .env values into os.environ; keep them out of other tests.
    environ = {k: v for k, v in os.environ.items() if k not in ENV_NAMES}
    monkeypatch.setattr(os, "environ", environ)
    yield


def test_load_config_reads_env_file(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "# local keys\n"
        "API_KEY=from-file\n"
        "CHAT_BACKEND=GPT\n"
        "OPENAI_MODEL=gpt-4o\n"
        "REQUEST_TIMEOUT_MS=not-a-number\n",
        encoding="utf-8",
    )
    config = load_config(str(env_file))

    assert config.gemini_key == "from-file"
    assert config.chat_backend == "gpt"
    assert config.metadata["openai_model"] == "gpt-4o"
    assert config.request_timeout_ms == AppConfig().request_timeout_ms


def test_gemini_key_takes_priority(tmp_path, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "primary")
    monkeypatch.setenv("API_KEY", "secondary")

    config = load_config(str(tmp_path / "missing.env"))

    assert config.gemini_key == "primary"


def test_key_gate_tracks_selection():
    config = AppConfig()
    gate = ApiKeyGate(config)
    assert gate.has_selected_api_key() is False

    with pytest.raises(ValueError):
        gate.open_select_key("   ")

    gate.open_select_key("  abc  ")
    assert gate.has_selected_api_key() is True
    assert config.gemini_key == "abc"


def test_setup_logging_creates_log_dir(tmp_path):
    config = AppConfig(log_dir=tmp_path / "logs")

    logger = setup_logging(config)

    assert logger.name == "glowmint_muse"
    assert (tmp_path / "logs").is_dir()
    assert logging.getLogger("httpx").level == logging.WARNING
