"""Per-browser creative session wiring store, cursor, prompt and orchestrator."""

from __future__ import annotations

from typing import Any, Optional

from config.settings import AppConfig
from modules.assistant.chat_assistant import ChatAssistant
from modules.pipelines.img2img import Image2ImageService
from modules.pipelines.text2img import Text2ImageService
from modules.pipelines.vision import ImageAnalysisService
from modules.services.artifact_store import Artifact, ArtifactStore, GenerationSettings
from modules.services.history_service import HistoryCursor
from modules.services.orchestrator import GenerationOrchestrator
from modules.services.prompt_sync import PromptBuffer, PromptSync


class CreativeSession:
    """Explicit context for one user's artifacts, prompt and chat.

    Nothing here is shared between sessions and nothing is persisted.
    """

    def __init__(
        self,
        text2img: Any,
        image2img: Any,
        vision: Any,
        assistant: Optional[ChatAssistant] = None,
    ) -> None:
        self.store = ArtifactStore()
        self.cursor = HistoryCursor(self.store)
        self.prompt = PromptBuffer()
        self.prompt_sync = PromptSync(self.prompt)
        self.orchestrator = GenerationOrchestrator(
            self.store, self.cursor, text2img=text2img, image2img=image2img, vision=vision
        )
        self.assistant = assistant
        self.cursor.on_move(self.prompt_sync.on_cursor_moved)
        self.cursor.on_move(lambda _artifact: self.orchestrator.clear_feedback())

    @classmethod
    def from_config(cls, config: AppConfig) -> "CreativeSession":
        return cls(
            text2img=Text2ImageService(config),
            image2img=Image2ImageService(config),
            vision=ImageAnalysisService(config),
            assistant=ChatAssistant(config),
        )

    @property
    def selected(self) -> Optional[Artifact]:
        return self.cursor.current()

    # Navigation ---------------------------------------------------------------
    def select(self, artifact_id: str) -> None:
        self.cursor.select_by_id(artifact_id)

    def undo(self) -> None:
        self.cursor.go_older()

    def redo(self) -> None:
        self.cursor.go_newer()

    # Prompt -------------------------------------------------------------------
    def type_prompt(self, text: str) -> None:
        """Record free-form typing; this is not a sync event."""
        self.prompt.text = text or ""

    def use_prompt(self, text: str) -> None:
        self.prompt_sync.on_explicit_prompt_use(text)

    # Artifacts ----------------------------------------------------------------
    def import_image(self, content: str) -> Artifact:
        """Add an outside image; it is selected only if nothing else is."""
        artifact = Artifact.imported(content)
        self.store.append(artifact)
        return artifact

    async def generate(self, settings: GenerationSettings) -> Optional[Artifact]:
        return await self.orchestrator.generate(self.prompt.text, settings)

    async def refine(
        self, instruction: str, settings: Optional[GenerationSettings] = None
    ) -> Optional[Artifact]:
        return await self.orchestrator.refine(self.selected, instruction, settings)

    async def analyze(self) -> Optional[str]:
        return await self.orchestrator.analyze(self.selected)
