"""API key presence check used by the UI shell before any generation call."""

from __future__ import annotations

import logging

from config.settings import AppConfig

logger = logging.getLogger(__name__)


class ApiKeyGate:
    """Tracks whether a Gemini API key has been selected for this process."""

    def __init__(self, config: AppConfig) -> None:
        self.config = config

    def has_selected_api_key(self) -> bool:
        return bool((self.config.gemini_key or "").strip())

    def open_select_key(self, key: str) -> None:
        """Install a user-supplied key; blank input is rejected."""
        cleaned = (key or "").strip()
        if not cleaned:
            raise ValueError("API key must not be empty")
        self.config.gemini_key = cleaned
        logger.info("Gemini API key selected")
