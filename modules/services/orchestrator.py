"""Request lifecycle for generate, refine and analyze."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Optional

from modules.pipelines.vision import ANALYSIS_ERROR_TEXT
from modules.services.artifact_store import (
    Artifact,
    ArtifactOrigin,
    ArtifactStore,
    GenerationSettings,
)
from modules.services.history_service import HistoryCursor

logger = logging.getLogger(__name__)

GENERATE_FAILED_NOTICE = "Failed to generate image. Please try again."
REFINE_FAILED_NOTICE = "Failed to refine image."


class OrchestratorState(str, Enum):
    IDLE = "idle"
    BUSY = "busy"


class GenerationOrchestrator:
    """Run one collaborator request at a time and record successful results.

    Requests issued while another one is in flight are dropped, not queued.
    Collaborator errors never escape: they become ``notice`` and the store is
    left untouched. The busy flag is released on every exit path.
    """

    def __init__(
        self,
        store: ArtifactStore,
        cursor: HistoryCursor,
        text2img: Any,
        image2img: Any,
        vision: Any,
    ) -> None:
        self.store = store
        self.cursor = cursor
        self.text2img = text2img
        self.image2img = image2img
        self.vision = vision
        self.state = OrchestratorState.IDLE
        self.notice: Optional[str] = None
        self.analysis: Optional[str] = None

    @property
    def busy(self) -> bool:
        return self.state is OrchestratorState.BUSY

    def clear_feedback(self) -> None:
        """Drop the notice and analysis that belonged to the previous selection."""
        self.notice = None
        self.analysis = None

    async def generate(self, prompt_text: str, settings: GenerationSettings) -> Optional[Artifact]:
        """Generate a new artifact from ``prompt_text`` and select it."""
        if not (prompt_text or "").strip():
            logger.debug("Rejected generate: empty prompt")
            return None
        if not self._begin("generate"):
            return None

        content: Optional[str] = None
        try:
            content = await self.text2img.generate_image(
                prompt_text,
                settings.model,
                settings.aspect_ratio,
                settings.negative_prompt or None,
            )
        except Exception:  # noqa: BLE001
            logger.exception("Image generation failed")
        finally:
            self.state = OrchestratorState.IDLE

        if not content:
            self.notice = GENERATE_FAILED_NOTICE
            return None
        return self._commit(
            Artifact(
                content=content,
                prompt=prompt_text,
                aspect_ratio=settings.aspect_ratio,
                model_id=settings.model,
                origin=ArtifactOrigin.GENERATED,
            )
        )

    async def refine(
        self,
        base: Optional[Artifact],
        instruction: str,
        settings: Optional[GenerationSettings] = None,
    ) -> Optional[Artifact]:
        """Edit the selected artifact; the result keeps the base's framing and model."""
        if base is None or base.id != self.cursor.selected_id:
            logger.debug("Rejected refine: base artifact is not the current selection")
            return None
        if not (instruction or "").strip():
            logger.debug("Rejected refine: empty instruction")
            return None
        if not self._begin("refine"):
            return None

        request_model = settings.model if settings is not None else base.model_id
        content: Optional[str] = None
        try:
            content = await self.image2img.refine_image(base.content, instruction, request_model)
        except Exception:  # noqa: BLE001
            logger.exception("Image refinement failed")
        finally:
            self.state = OrchestratorState.IDLE

        if not content:
            self.notice = REFINE_FAILED_NOTICE
            return None
        return self._commit(
            Artifact(
                content=content,
                prompt=f"Refined: {instruction}",
                aspect_ratio=base.aspect_ratio,
                model_id=base.model_id,
                origin=ArtifactOrigin.REFINED,
            )
        )

    async def analyze(self, artifact: Optional[Artifact]) -> Optional[str]:
        """Critique ``artifact``; the text is kept only while it stays selected."""
        if artifact is None:
            logger.debug("Rejected analyze: nothing selected")
            return None
        if not self._begin("analyze"):
            return None

        try:
            result = await self.vision.analyze_image(artifact.content)
        except Exception:  # noqa: BLE001
            logger.exception("Image analysis failed")
            result = ANALYSIS_ERROR_TEXT
        finally:
            self.state = OrchestratorState.IDLE

        if self.cursor.selected_id == artifact.id:
            self.analysis = result
        return result

    # Internal helpers ---------------------------------------------------------
    def _begin(self, operation: str) -> bool:
        if self.busy:
            logger.info("Ignoring %s request while another request is in flight", operation)
            return False
        self.state = OrchestratorState.BUSY
        self.notice = None
        self.analysis = None
        return True

    def _commit(self, artifact: Artifact) -> Artifact:
        self.store.append(artifact)
        self.cursor.follow(artifact)
        logger.info("Stored %s artifact %s", artifact.origin.value, artifact.id)
        return artifact
