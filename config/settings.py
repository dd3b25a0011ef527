"""Configuration helpers for the GlowMint Muse project."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional


@dataclass(slots=True)
class AppConfig:
    """Centralized application configuration."""

    output_dir: Path = Path("outputs")
    log_dir: Path = Path("logs")
    gemini_key: Optional[str] = None
    openai_key: Optional[str] = None
    anthropic_key: Optional[str] = None
    chat_backend: str = "gemini"
    chat_model: str = "gemini-2.5-flash"
    analysis_model: str = "gemini-2.5-flash"
    default_aspect_ratio: str = "1:1"
    default_model: str = "gemini-2.5-flash-image"
    request_timeout_ms: int = 300_000
    metadata: dict[str, Any] = field(default_factory=dict)


def _load_env_file(path: Path) -> None:
    """Populate environment variables from a simple KEY=VALUE .env file."""
    if not path.exists():
        return

    for line in path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ[key.strip()] = value.strip().strip('"').strip("'")


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Return an AppConfig instance with environment-aware settings."""
    env_path = Path(config_path) if config_path else Path(".env")
    _load_env_file(env_path)

    gemini_key = (
        os.getenv("GEMINI_API_KEY")
        or os.getenv("API_KEY")
        or os.getenv("GOOGLE_API_KEY")
    )

    metadata: dict[str, Any] = {}
    for env_name, key in (
        ("OPENAI_MODEL", "openai_model"),
        ("OPENAI_BASE_URL", "openai_base_url"),
        ("CLAUDE_MODEL", "claude_model"),
    ):
        value = os.getenv(env_name)
        if value:
            metadata[key] = value

    defaults = AppConfig()
    return AppConfig(
        output_dir=Path(os.getenv("OUTPUT_DIR", str(defaults.output_dir))).expanduser(),
        log_dir=Path(os.getenv("LOG_DIR", str(defaults.log_dir))).expanduser(),
        gemini_key=gemini_key,
        openai_key=os.getenv("OPENAI_API_KEY"),
        anthropic_key=os.getenv("ANTHROPIC_API_KEY"),
        chat_backend=os.getenv("CHAT_BACKEND", defaults.chat_backend).lower(),
        chat_model=os.getenv("CHAT_MODEL", defaults.chat_model),
        analysis_model=os.getenv("ANALYSIS_MODEL", defaults.analysis_model),
        request_timeout_ms=_int_env("REQUEST_TIMEOUT_MS", defaults.request_timeout_ms),
        metadata=metadata,
    )
