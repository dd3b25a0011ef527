"""Binding between the history cursor and the editable prompt field."""

from __future__ import annotations

from dataclasses import dataclass

from modules.services.artifact_store import Artifact


@dataclass(slots=True)
class PromptBuffer:
    """The prompt text the user is currently editing."""

    text: str = ""


class PromptSync:
    """Overwrite the prompt buffer when the cursor moves or a prompt is picked.

    Navigation discards whatever the user had typed. Free-form typing never
    goes through this class.
    """

    def __init__(self, buffer: PromptBuffer) -> None:
        self.buffer = buffer

    def on_cursor_moved(self, artifact: Artifact) -> None:
        self.buffer.text = artifact.prompt

    def on_explicit_prompt_use(self, text: str) -> None:
        self.buffer.text = text
