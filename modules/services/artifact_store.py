"""Artifact model and the newest-first, append-only artifact store."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional, Sequence

IMPORTED_PROMPT = "Imported from Chat"


class ArtifactOrigin(str, Enum):
    """How an artifact came into the session."""

    GENERATED = "generated"
    IMPORTED = "imported"
    REFINED = "refined"


class AspectRatio(str, Enum):
    """Aspect ratios accepted by the image models."""

    SQUARE = "1:1"
    PORTRAIT = "3:4"
    LANDSCAPE = "4:3"
    WIDE = "16:9"
    TALL = "9:16"


class GenerationModel(str, Enum):
    """Image models exposed to the user."""

    FAST = "gemini-2.5-flash-image"
    HIGH_FIDELITY = "gemini-3-pro-image-preview"


@dataclass(slots=True)
class GenerationSettings:
    """Settings in effect when a generation request is issued."""

    aspect_ratio: AspectRatio = AspectRatio.SQUARE
    model: GenerationModel = GenerationModel.FAST
    negative_prompt: Optional[str] = None


_id_lock = threading.Lock()
_last_id = 0


def new_artifact_id() -> str:
    """Return a time-based id that sorts by creation order."""
    global _last_id
    with _id_lock:
        candidate = max(time.time_ns(), _last_id + 1)
        _last_id = candidate
    return f"{candidate:020d}"


@dataclass(frozen=True, slots=True)
class Artifact:
    """One generated, refined or imported image plus its provenance."""

    content: str
    prompt: str
    aspect_ratio: AspectRatio
    model_id: GenerationModel
    origin: ArtifactOrigin
    id: str = field(default_factory=new_artifact_id)
    created_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def imported(cls, content: str) -> "Artifact":
        """Build an artifact for an image brought in from outside the generator."""
        return cls(
            content=content,
            prompt=IMPORTED_PROMPT,
            aspect_ratio=AspectRatio.SQUARE,
            model_id=GenerationModel.FAST,
            origin=ArtifactOrigin.IMPORTED,
        )


AppendListener = Callable[[Artifact, bool], None]


class ArtifactStore:
    """Ordered artifact history, newest at index 0.

    Artifacts are only ever inserted at the front and never removed, so an
    index computed before an append is shifted by one afterwards.
    """

    def __init__(self) -> None:
        self._items: List[Artifact] = []
        self._ids: set[str] = set()
        self._listeners: List[AppendListener] = []

    def subscribe(self, listener: AppendListener) -> None:
        """Call ``listener(artifact, was_empty)`` after every append."""
        self._listeners.append(listener)

    def append(self, artifact: Artifact) -> None:
        """Insert an artifact at the front of the history."""
        if artifact.id in self._ids:
            raise ValueError(f"Artifact '{artifact.id}' already exists")
        was_empty = not self._items
        self._items.insert(0, artifact)
        self._ids.add(artifact.id)
        for listener in list(self._listeners):
            listener(artifact, was_empty)

    def find_index(self, artifact_id: Optional[str]) -> int:
        """Return the position of ``artifact_id`` or -1 when absent."""
        if artifact_id is None or artifact_id not in self._ids:
            return -1
        for index, item in enumerate(self._items):
            if item.id == artifact_id:
                return index
        return -1

    def get(self, artifact_id: Optional[str]) -> Optional[Artifact]:
        index = self.find_index(artifact_id)
        return self._items[index] if index != -1 else None

    def at(self, index: int) -> Artifact:
        return self._items[index]

    def all(self) -> Sequence[Artifact]:
        """Snapshot of the history for rendering."""
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)
