"""One-off script for debugging the generate -> refine -> critique loop."""

from __future__ import annotations

import asyncio

from config.settings import load_config
from modules.services.artifact_store import AspectRatio, GenerationModel, GenerationSettings
from modules.services.session import CreativeSession
from modules.services.storage_service import StorageService
from modules.utils.logging import setup_logging


async def run() -> None:
    # 1. Real configuration and services
    config = load_config()
    setup_logging(config)
    session = CreativeSession.from_config(config)
    storage = StorageService(config.output_dir)

    # 2. Generate
    session.type_prompt("A lighthouse made of coral on a calm teal sea, watercolor")
    settings = GenerationSettings(
        aspect_ratio=AspectRatio.LANDSCAPE,
        model=GenerationModel.FAST,
        negative_prompt="text, watermark",
    )
    artifact = await session.generate(settings)
    if artifact is None:
        print("Generation failed:", session.orchestrator.notice)
        return
    print("Generated:", storage.save_artifact(artifact))

    # 3. Refine the current selection
    refined = await session.refine("Add a flock of paper birds circling the lamp")
    if refined is not None:
        print("Refined:", storage.save_artifact(refined))
    else:
        print("Refine failed:", session.orchestrator.notice)

    # 4. Critique
    print("Critique:", await session.analyze())


if __name__ == "__main__":
    asyncio.run(run())
