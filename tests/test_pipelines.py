"""Gemini pipeline service tests with a fake google-genai client."""

from __future__ import annotations

import asyncio
import base64
from types import SimpleNamespace

import pytest

from config.settings import AppConfig
from modules.pipelines import genai_client, img2img, text2img, vision
from modules.services.artifact_store import AspectRatio, GenerationModel

PNG_BYTES = b"\x89PNG-not-really"
SOURCE_URL = "data:image/jpeg;base64," + base64.b64encode(b"source-bytes").decode("utf-8")


def image_response(data: bytes = PNG_BYTES, mime_type: str = "image/png"):
    parts = [
        SimpleNamespace(inline_data=None, text="Here you go"),
        SimpleNamespace(inline_data=SimpleNamespace(data=data, mime_type=mime_type)),
    ]
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=parts))])


class DummyModels:
    """Records generate_content calls and replays a canned response."""

    def __init__(self, response=None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[dict] = []

    async def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


class DummyClient:
    def __init__(self, models: DummyModels) -> None:
        self.aio = SimpleNamespace(models=models)


def factory_for(models: DummyModels):
    def _factory(config: AppConfig) -> DummyClient:
        return DummyClient(models)

    return _factory


def test_compose_prompt_appends_negative_qualifier():
    assert text2img.compose_prompt("a cat") == "a cat"
    assert text2img.compose_prompt("a cat", "") == "a cat"
    assert text2img.compose_prompt("a cat", "dogs") == "a cat\n\n(Negative Prompt: dogs)"


def test_build_image_config_sets_2k_for_high_fidelity():
    fast = text2img.build_image_config(GenerationModel.FAST, AspectRatio.TALL)
    pro = text2img.build_image_config(GenerationModel.HIGH_FIDELITY, AspectRatio.WIDE)

    assert fast.image_config.aspect_ratio == "9:16"
    assert fast.image_config.image_size is None
    assert pro.image_config.aspect_ratio == "16:9"
    assert pro.image_config.image_size == "2K"


def test_generate_image_returns_data_url():
    models = DummyModels(response=image_response())
    service = text2img.Text2ImageService(AppConfig(), client_factory=factory_for(models))

    result = asyncio.run(
        service.generate_image("a cat", GenerationModel.FAST, AspectRatio.SQUARE, "dogs")
    )

    assert result == "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("utf-8")
    call = models.calls[0]
    assert call["model"] == GenerationModel.FAST.value
    assert call["contents"][0].text == "a cat\n\n(Negative Prompt: dogs)"
    assert call["config"].image_config.aspect_ratio == "1:1"


def test_generate_image_without_image_returns_none():
    empty = SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[]))])
    service = text2img.Text2ImageService(AppConfig(), client_factory=factory_for(DummyModels(response=empty)))

    assert asyncio.run(service.generate_image("a cat", GenerationModel.FAST, AspectRatio.SQUARE)) is None


def test_generate_image_propagates_provider_errors():
    models = DummyModels(error=RuntimeError("quota exceeded"))
    service = text2img.Text2ImageService(AppConfig(), client_factory=factory_for(models))

    with pytest.raises(RuntimeError, match="quota"):
        asyncio.run(service.generate_image("a cat", GenerationModel.FAST, AspectRatio.SQUARE))


def test_refine_image_sends_image_and_instruction():
    models = DummyModels(response=image_response(mime_type="image/webp"))
    service = img2img.Image2ImageService(AppConfig(), client_factory=factory_for(models))

    result = asyncio.run(service.refine_image(SOURCE_URL, "add a hat", GenerationModel.HIGH_FIDELITY))

    assert result is not None and result.startswith("data:image/webp;base64,")
    call = models.calls[0]
    assert call["model"] == GenerationModel.HIGH_FIDELITY.value
    image, instruction = call["contents"]
    assert image.inline_data.data == b"source-bytes"
    assert image.inline_data.mime_type == "image/jpeg"
    assert instruction.text == "add a hat"


def test_analyze_image_returns_text():
    models = DummyModels(response=SimpleNamespace(text=" neon, moody, teal, grain, wide. Balanced. "))
    config = AppConfig(analysis_model="vision-model")
    service = vision.ImageAnalysisService(config, client_factory=factory_for(models))

    result = asyncio.run(service.analyze_image(SOURCE_URL))

    assert result == "neon, moody, teal, grain, wide. Balanced."
    assert models.calls[0]["model"] == "vision-model"
    assert models.calls[0]["contents"][1].text == vision.ANALYSIS_INSTRUCTION


def test_analyze_image_degrades_instead_of_raising():
    models = DummyModels(error=RuntimeError("network"))
    service = vision.ImageAnalysisService(AppConfig(), client_factory=factory_for(models))

    assert asyncio.run(service.analyze_image(SOURCE_URL)) == vision.ANALYSIS_ERROR_TEXT


def test_analyze_image_empty_text_uses_fallback():
    models = DummyModels(response=SimpleNamespace(text=None))
    service = vision.ImageAnalysisService(AppConfig(), client_factory=factory_for(models))

    assert asyncio.run(service.analyze_image(SOURCE_URL)) == vision.EMPTY_ANALYSIS_TEXT


def test_create_client_requires_key():
    with pytest.raises(RuntimeError):
        genai_client.create_client(AppConfig(gemini_key=None))


def test_create_client_uses_configured_timeout(monkeypatch):
    captured = {}

    class DummyGenaiClient:
        def __init__(self, **kwargs) -> None:
            captured.update(kwargs)

    monkeypatch.setattr(genai_client.genai, "Client", DummyGenaiClient)

    genai_client.create_client(AppConfig(gemini_key="k", request_timeout_ms=1234))

    assert captured["api_key"] == "k"
    assert captured["http_options"].timeout == 1234
