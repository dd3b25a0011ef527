"""Image critique service."""

from __future__ import annotations

import logging
from typing import Optional

from google.genai import types

from config.settings import AppConfig
from modules.pipelines.genai_client import ClientFactory, create_client, image_part

logger = logging.getLogger(__name__)

ANALYSIS_INSTRUCTION = (
    "Analyze this image. Provide a comma-separated list of 5 stylistic tags, "
    "followed by a brief 1-sentence critique of the composition or anatomy."
)
EMPTY_ANALYSIS_TEXT = "Could not analyze image."
ANALYSIS_ERROR_TEXT = "Error analyzing image."


class ImageAnalysisService:
    """Ask a vision model for tags and a short critique."""

    def __init__(self, config: AppConfig, client_factory: Optional[ClientFactory] = None) -> None:
        self.config = config
        self._client_factory = client_factory or create_client

    async def analyze_image(self, image: str) -> str:
        """Return critique text; failures degrade to a fixed message instead of raising."""
        try:
            client = self._client_factory(self.config)
            response = await client.aio.models.generate_content(
                model=self.config.analysis_model,
                contents=[image_part(image), types.Part.from_text(text=ANALYSIS_INSTRUCTION)],
            )
        except Exception:  # noqa: BLE001
            logger.exception("Image analysis failed")
            return ANALYSIS_ERROR_TEXT
        return (getattr(response, "text", None) or "").strip() or EMPTY_ANALYSIS_TEXT
