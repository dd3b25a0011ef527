"""Undo/redo navigation over the artifact history."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from modules.services.artifact_store import Artifact, ArtifactStore

logger = logging.getLogger(__name__)

MoveListener = Callable[[Artifact], None]


class HistoryCursor:
    """Pointer to the currently viewed artifact.

    History is newest-first, so "older" (undo) means a higher index and
    "newer" (redo) a lower one. Listeners registered with ``on_move`` fire
    only when the user navigates; following a freshly appended artifact is
    silent so the prompt buffer keeps what produced it.
    """

    def __init__(self, store: ArtifactStore) -> None:
        self.store = store
        self.selected_id: Optional[str] = None
        self._listeners: List[MoveListener] = []
        store.subscribe(self._on_append)

    def on_move(self, listener: MoveListener) -> None:
        """Register a callback invoked with the artifact navigated to."""
        self._listeners.append(listener)

    # Queries ------------------------------------------------------------------
    def current(self) -> Optional[Artifact]:
        return self.store.get(self.selected_id)

    def current_index(self) -> int:
        """Index of the selection, or -1 when nothing valid is selected."""
        return self.store.find_index(self.selected_id)

    def can_go_older(self) -> bool:
        index = self.current_index()
        return index != -1 and index < len(self.store) - 1

    def can_go_newer(self) -> bool:
        return self.current_index() > 0

    # Navigation ---------------------------------------------------------------
    def select_by_id(self, artifact_id: str) -> None:
        """Select an artifact; unknown ids are ignored."""
        artifact = self.store.get(artifact_id)
        if artifact is None:
            logger.debug("Ignoring selection of unknown artifact %s", artifact_id)
            return
        self._move_to(artifact)

    def go_older(self) -> None:
        if self.can_go_older():
            self._move_to(self.store.at(self.current_index() + 1))

    def go_newer(self) -> None:
        if self.can_go_newer():
            self._move_to(self.store.at(self.current_index() - 1))

    def follow(self, artifact: Artifact) -> None:
        """Select a newly appended artifact without notifying listeners."""
        if self.store.find_index(artifact.id) != -1:
            self.selected_id = artifact.id

    # Internal helpers ---------------------------------------------------------
    def _move_to(self, artifact: Artifact) -> None:
        self.selected_id = artifact.id
        for listener in list(self._listeners):
            listener(artifact)

    def _on_append(self, artifact: Artifact, was_empty: bool) -> None:
        if was_empty or self.current_index() == -1:
            self.selected_id = self.store.at(0).id
