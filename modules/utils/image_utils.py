"""Helpers for moving opaque image payloads around as data URLs."""

from __future__ import annotations

import base64
import binascii
import mimetypes
from pathlib import Path
from typing import Tuple

_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
    "image/gif": "gif",
}


def to_data_url(mime_type: str, data: bytes) -> str:
    """Wrap raw bytes into a base64 data URL."""
    encoded = base64.b64encode(data).decode("utf-8")
    return f"data:{mime_type or 'image/png'};base64,{encoded}"


def parse_data_url(data_url: str) -> Tuple[str, bytes]:
    """Split a base64 data URL into its MIME type and payload bytes."""
    mime_type, payload = split_data_url(data_url)
    try:
        return mime_type, base64.b64decode(payload, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"Invalid base64 payload: {exc}") from exc


def file_to_data_url(path: str | Path) -> str:
    """Read an uploaded file and return it as a data URL."""
    file_path = Path(path)
    mime_type, _ = mimetypes.guess_type(file_path.name)
    return to_data_url(mime_type or "image/png", file_path.read_bytes())


def split_data_url(data_url: str) -> Tuple[str, str]:
    """Return the MIME type and the still-encoded base64 payload."""
    if not data_url or not data_url.startswith("data:") or "," not in data_url:
        raise ValueError("Expected a base64 data URL")
    header, payload = data_url.split(",", 1)
    return header[len("data:"):].split(";", 1)[0] or "image/png", payload


def extension_for_mime(mime_type: str) -> str:
    """Return a file extension for a MIME type, defaulting to png."""
    return _EXTENSIONS.get(mime_type, "png")
