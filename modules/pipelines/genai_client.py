"""Shared google-genai client construction and response helpers."""

from __future__ import annotations

from typing import Any, Callable, Optional

from google import genai
from google.genai import types

from config.settings import AppConfig
from modules.utils.image_utils import parse_data_url, to_data_url

ClientFactory = Callable[[AppConfig], Any]


def create_client(config: AppConfig) -> genai.Client:
    """Build a fresh client so a newly selected API key is picked up."""
    if not config.gemini_key:
        raise RuntimeError("Gemini API key is not configured")
    return genai.Client(
        api_key=config.gemini_key,
        http_options=types.HttpOptions(timeout=config.request_timeout_ms),
    )


def image_part(data_url: str) -> types.Part:
    """Turn a data URL into an inline image part."""
    mime_type, data = parse_data_url(data_url)
    return types.Part.from_bytes(data=data, mime_type=mime_type)


def first_inline_image(response: Any) -> Optional[str]:
    """Return the first inline image of the first candidate as a data URL."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None
    content = getattr(candidates[0], "content", None)
    for part in getattr(content, "parts", None) or []:
        inline = getattr(part, "inline_data", None)
        if inline is not None and inline.data:
            return to_data_url(inline.mime_type or "image/png", inline.data)
    return None
