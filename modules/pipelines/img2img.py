"""Semantic image editing service (image + instruction -> image)."""

from __future__ import annotations

import logging
from typing import Optional

from google.genai import types

from config.settings import AppConfig
from modules.pipelines.genai_client import (
    ClientFactory,
    create_client,
    first_inline_image,
    image_part,
)
from modules.services.artifact_store import GenerationModel

logger = logging.getLogger(__name__)


class Image2ImageService:
    """Refine an existing image with a natural-language instruction."""

    def __init__(self, config: AppConfig, client_factory: Optional[ClientFactory] = None) -> None:
        self.config = config
        self._client_factory = client_factory or create_client

    async def refine_image(
        self,
        image: str,
        instruction: str,
        model: GenerationModel = GenerationModel.FAST,
    ) -> Optional[str]:
        """Return the edited image as a data URL, or None when none came back."""
        client = self._client_factory(self.config)
        logger.info("Refining image with %s", model.value)
        response = await client.aio.models.generate_content(
            model=model.value,
            contents=[image_part(image), types.Part.from_text(text=instruction)],
        )
        refined = first_inline_image(response)
        if refined is None:
            logger.warning("Model %s returned no refined image", model.value)
        return refined
