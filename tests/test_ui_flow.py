"""Gradio UI callback tests."""

from __future__ import annotations

import asyncio
import base64
from pathlib import Path
from typing import Optional

from config.settings import AppConfig
from modules.assistant.chat_assistant import ChatAssistant
from modules.services.artifact_store import AspectRatio, GenerationModel
from modules.services.key_gate import ApiKeyGate
from modules.services.session import CreativeSession
from modules.services.storage_service import StorageService
from modules.ui import callbacks
from modules.ui.callbacks import KEY_REQUIRED_STATUS

IMAGE_URL = "data:image/png;base64," + base64.b64encode(b"fake-png").decode("utf-8")

# Workspace output positions
SESSION, VIEWER, HISTORY, PROMPT, ANALYSIS, STATUS, UNDO, REDO = range(8)


class DummyText2ImageService:
    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.should_fail = False

    async def generate_image(self, prompt, model, aspect_ratio, negative_prompt=None):
        self.calls.append((prompt, model, aspect_ratio, negative_prompt))
        if self.should_fail:
            raise RuntimeError("boom")
        return IMAGE_URL


class DummyImage2ImageService:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    async def refine_image(self, image, instruction, model=GenerationModel.FAST):
        self.calls.append((image, instruction, model))
        return IMAGE_URL


class DummyVisionService:
    async def analyze_image(self, image):
        return "soft, pastel, airy, calm, minimal. Nice negative space."


def build_callbacks(
    *,
    config: Optional[AppConfig] = None,
    text_service: Optional[DummyText2ImageService] = None,
    assistant: Optional[ChatAssistant] = None,
    storage: Optional[StorageService] = None,
):
    config = config or AppConfig(gemini_key="test-key")
    text_service = text_service or DummyText2ImageService()

    def factory() -> CreativeSession:
        return CreativeSession(
            text2img=text_service,
            image2img=DummyImage2ImageService(),
            vision=DummyVisionService(),
            assistant=assistant,
        )

    return callbacks.build_callbacks(
        config,
        session_factory=factory,
        gate=ApiKeyGate(config),
        storage=storage,
    )


def generate(cb_map, session, prompt, aspect="1:1", model=GenerationModel.FAST.value, negative=""):
    return asyncio.run(cb_map["on_generate"](session, prompt, aspect, model, negative))


def test_on_generate_creates_session_and_artifact():
    text_service = DummyText2ImageService()
    cb_map = build_callbacks(text_service=text_service)

    view = generate(cb_map, None, "a tiny robot", "16:9", GenerationModel.HIGH_FIDELITY.value, "rust")

    session = view[SESSION]
    assert isinstance(session, CreativeSession)
    assert len(session.store) == 1
    assert IMAGE_URL in view[VIEWER]
    assert view[PROMPT] == "a tiny robot"
    assert "generated" in view[STATUS]
    assert text_service.calls == [
        ("a tiny robot", GenerationModel.HIGH_FIDELITY, AspectRatio.WIDE, "rust")
    ]
    assert view[HISTORY]["value"] == session.cursor.selected_id


def test_on_generate_blank_prompt_skips_service():
    text_service = DummyText2ImageService()
    cb_map = build_callbacks(text_service=text_service)

    view = generate(cb_map, None, "   ")

    assert text_service.calls == []
    assert len(view[SESSION].store) == 0
    assert "prompt" in view[STATUS].lower()


def test_on_generate_failure_shows_notice():
    text_service = DummyText2ImageService()
    text_service.should_fail = True
    cb_map = build_callbacks(text_service=text_service)

    view = generate(cb_map, None, "a cat")

    assert "Failed to generate image" in view[STATUS]
    assert len(view[SESSION].store) == 0


def test_on_generate_requires_api_key():
    text_service = DummyText2ImageService()
    cb_map = build_callbacks(config=AppConfig(gemini_key=None), text_service=text_service)

    view = generate(cb_map, None, "a cat")

    assert view[STATUS] == KEY_REQUIRED_STATUS
    assert text_service.calls == []


def test_on_connect_key_unlocks_studio():
    config = AppConfig(gemini_key=None)
    cb_map = build_callbacks(config=config)

    gate_panel, studio, message = cb_map["on_connect_key"]("  ")
    assert studio["visible"] is False
    assert "empty" in message

    gate_panel, studio, message = cb_map["on_connect_key"]("new-key")
    assert gate_panel["visible"] is False
    assert studio["visible"] is True
    assert config.gemini_key == "new-key"


def test_undo_redo_restore_prompts_and_buttons():
    cb_map = build_callbacks()
    session = generate(cb_map, None, "first idea")[SESSION]
    view = generate(cb_map, session, "second idea")
    assert view[UNDO]["interactive"] is True
    assert view[REDO]["interactive"] is False

    view = cb_map["on_undo"](session, "unsaved typing")

    assert view[PROMPT] == "first idea"
    assert view[UNDO]["interactive"] is False
    assert view[REDO]["interactive"] is True

    view = cb_map["on_redo"](session, "more typing")
    assert view[PROMPT] == "second idea"


def test_on_select_jumps_to_history_item():
    cb_map = build_callbacks()
    session = generate(cb_map, None, "first idea")[SESSION]
    generate(cb_map, session, "second idea")
    oldest = session.store.all()[-1]

    view = cb_map["on_select"](session, "draft", oldest.id)

    assert session.cursor.selected_id == oldest.id
    assert view[PROMPT] == "first idea"


def test_on_select_current_item_keeps_typed_prompt():
    cb_map = build_callbacks()
    session = generate(cb_map, None, "first idea")[SESSION]

    view = cb_map["on_select"](session, "still typing", session.cursor.selected_id)

    assert view[PROMPT] == "still typing"


def test_on_refine_clears_instruction_on_success():
    cb_map = build_callbacks()
    session = generate(cb_map, None, "a cat", "3:4")[SESSION]

    result = asyncio.run(
        cb_map["on_refine"](session, "a cat", "add a hat", "16:9", GenerationModel.FAST.value, "")
    )

    assert result[-1] == ""
    assert session.selected.prompt == "Refined: add a hat"
    assert session.selected.aspect_ratio is AspectRatio.PORTRAIT


def test_on_refine_without_instruction_keeps_input():
    cb_map = build_callbacks()
    session = generate(cb_map, None, "a cat")[SESSION]

    result = asyncio.run(cb_map["on_refine"](session, "a cat", "  ", "1:1", GenerationModel.FAST.value, ""))

    assert result[-1] == "  "
    assert len(session.store) == 1


def test_on_analyze_shows_and_navigation_hides_analysis():
    cb_map = build_callbacks()
    session = generate(cb_map, None, "one")[SESSION]
    generate(cb_map, session, "two")

    view = asyncio.run(cb_map["on_analyze"](session, "two"))
    assert "pastel" in view[ANALYSIS]

    view = cb_map["on_undo"](session, "two")
    assert view[ANALYSIS] == ""


def test_on_send_message_offers_prompt_suggestions():
    assistant = ChatAssistant(AppConfig(), auto_register=False)

    async def fake_backend(request):
        return "How about:\n```prompt\nA moonlit bamboo forest\n```"

    assistant.register_backend("gemini", fake_backend)
    cb_map = build_callbacks(assistant=assistant)

    session, messages, cleared_input, attachment, suggestions = asyncio.run(
        cb_map["on_send_message"](None, "something serene", None, "gemini")
    )

    assert cleared_input == ""
    assert attachment is None
    assert messages[-1]["role"] == "assistant"
    assert suggestions["choices"] == ["A moonlit bamboo forest"]

    session, prompt = cb_map["on_use_prompt"](session, "A moonlit bamboo forest")
    assert prompt == "A moonlit bamboo forest"
    assert session.prompt.text == "A moonlit bamboo forest"


def test_on_clear_chat_resets_transcript():
    assistant = ChatAssistant(AppConfig(), auto_register=False)
    cb_map = build_callbacks(assistant=assistant)

    session, messages, _ = cb_map["on_clear_chat"](None)

    assert len(messages) == 1
    assert "cleared" in messages[0]["content"]


def test_on_import_image_adds_imported_artifact(tmp_path):
    cb_map = build_callbacks()
    upload = tmp_path / "sketch.png"
    upload.write_bytes(b"sketch-bytes")

    view = cb_map["on_import_image"](None, "", str(upload))

    session = view[SESSION]
    artifact = session.selected
    assert artifact is not None
    assert artifact.prompt == "Imported from Chat"
    assert artifact.content.startswith("data:image/png;base64,")


def test_on_download_writes_selected_artifact(tmp_path):
    cb_map = build_callbacks(storage=StorageService(tmp_path))
    assert cb_map["on_download"](None) is None

    session = generate(cb_map, None, "a cat")[SESSION]
    path = cb_map["on_download"](session)

    assert path is not None
    assert path.endswith(f"glowmint-muse-{session.cursor.selected_id}.png")
    assert Path(path).parent == tmp_path
    assert Path(path).read_bytes() == b"fake-png"


def test_on_send_message_clears_attachment_and_import_uses_it(tmp_path):
    assistant = ChatAssistant(AppConfig(), auto_register=False)
    seen = []

    async def fake_backend(request):
        seen.append(request)
        return "Lovely composition."

    assistant.register_backend("gemini", fake_backend)
    cb_map = build_callbacks(assistant=assistant)
    upload = tmp_path / "sketch.png"
    upload.write_bytes(b"sketch-bytes")

    session, messages, cleared_input, attachment, _ = asyncio.run(
        cb_map["on_send_message"](None, "", str(upload), "gemini")
    )

    assert attachment is None
    assert seen[0].attachment.startswith("data:image/png;base64,")

    session, *_ = asyncio.run(cb_map["on_send_message"](session, "what next?", attachment, "gemini"))
    assert seen[1].attachment is None

    view = cb_map["on_import_image"](session, "", None)

    assert view[SESSION].selected.content == seen[0].attachment
    assert view[SESSION].selected.prompt == "Imported from Chat"


def test_navigation_hides_previous_failure_notice():
    text_service = DummyText2ImageService()
    cb_map = build_callbacks(text_service=text_service)
    session = generate(cb_map, None, "one")[SESSION]
    generate(cb_map, session, "two")
    text_service.should_fail = True

    view = generate(cb_map, session, "three")
    assert "Failed to generate image" in view[STATUS]

    view = cb_map["on_undo"](session, "three")

    assert "Failed" not in view[STATUS]
    assert view[PROMPT] == "one"
