"""Text-to-image generation service."""

from __future__ import annotations

import logging
from typing import Optional

from google.genai import types

from config.settings import AppConfig
from modules.pipelines.genai_client import ClientFactory, create_client, first_inline_image
from modules.services.artifact_store import AspectRatio, GenerationModel

logger = logging.getLogger(__name__)


def compose_prompt(prompt: str, negative_prompt: Optional[str] = None) -> str:
    """Fold the negative prompt into the main text as a bracketed qualifier."""
    full_prompt = prompt
    if negative_prompt:
        full_prompt += f"\n\n(Negative Prompt: {negative_prompt})"
    return full_prompt


def build_image_config(model: GenerationModel, aspect_ratio: AspectRatio) -> types.GenerateContentConfig:
    """Request config; the high-fidelity model also gets a 2K canvas."""
    image_size = "2K" if model == GenerationModel.HIGH_FIDELITY else None
    return types.GenerateContentConfig(
        image_config=types.ImageConfig(aspect_ratio=aspect_ratio.value, image_size=image_size),
    )


class Text2ImageService:
    """Facade around the Gemini image models."""

    def __init__(self, config: AppConfig, client_factory: Optional[ClientFactory] = None) -> None:
        self.config = config
        self._client_factory = client_factory or create_client

    async def generate_image(
        self,
        prompt: str,
        model: GenerationModel,
        aspect_ratio: AspectRatio,
        negative_prompt: Optional[str] = None,
    ) -> Optional[str]:
        """Generate an image and return it as a data URL, or None when none came back.

        Transport and provider errors propagate to the caller.
        """
        client = self._client_factory(self.config)
        logger.info("Generating image with %s at %s", model.value, aspect_ratio.value)
        response = await client.aio.models.generate_content(
            model=model.value,
            contents=[types.Part.from_text(text=compose_prompt(prompt, negative_prompt))],
            config=build_image_config(model, aspect_ratio),
        )
        image = first_inline_image(response)
        if image is None:
            logger.warning("Model %s returned no image", model.value)
        return image
