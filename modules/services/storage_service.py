"""File storage helpers."""

from __future__ import annotations

import logging
from pathlib import Path

from modules.services.artifact_store import Artifact
from modules.utils.image_utils import extension_for_mime, parse_data_url

logger = logging.getLogger(__name__)


class StorageService:
    """Write artifacts to disk so the browser can download them."""

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = output_dir

    def path_for(self, artifact: Artifact, mime_type: str = "image/png") -> Path:
        return Path(self.output_dir) / f"glowmint-muse-{artifact.id}.{extension_for_mime(mime_type)}"

    def save_artifact(self, artifact: Artifact) -> Path:
        """Persist the artifact payload and return the file path."""
        mime_type, data = parse_data_url(artifact.content)
        target = self.path_for(artifact, mime_type)
        target.parent.mkdir(parents=True, exist_ok=True)
        if not target.exists():
            target.write_bytes(data)
            logger.info("Saved artifact %s to %s", artifact.id, target)
        return target
