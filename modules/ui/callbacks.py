"""Callback implementations for the Gradio interface."""

from __future__ import annotations

import html
import logging
from typing import Any, Callable, Optional

import gradio as gr

from config.settings import AppConfig
from modules.assistant.chat_assistant import ChatRole, extract_prompt_suggestions
from modules.services.artifact_store import AspectRatio, GenerationModel, GenerationSettings
from modules.services.key_gate import ApiKeyGate
from modules.services.session import CreativeSession
from modules.services.storage_service import StorageService
from modules.utils.image_utils import file_to_data_url

logger = logging.getLogger(__name__)

EMPTY_CANVAS_HTML = (
    "<div style='padding:4rem;text-align:center;opacity:.6'>"
    "Your canvas is empty. Describe an idea and press <b>Generate</b>.</div>"
)
KEY_REQUIRED_STATUS = "Connect a Gemini API key before generating."


def _parse_aspect_ratio(value: Any, fallback: str) -> AspectRatio:
    for candidate in (value, fallback):
        try:
            return AspectRatio(candidate)
        except ValueError:
            continue
    return AspectRatio.SQUARE


def _parse_model(value: Any, fallback: str) -> GenerationModel:
    for candidate in (value, fallback):
        try:
            return GenerationModel(candidate)
        except ValueError:
            continue
    return GenerationModel.FAST


def _render_viewer(session: CreativeSession) -> str:
    artifact = session.selected
    if artifact is None:
        return EMPTY_CANVAS_HTML
    caption = html.escape(artifact.prompt)
    return (
        f"<figure style='margin:0;text-align:center'>"
        f"<img src='{artifact.content}' alt='{caption}' "
        f"style='max-width:100%;max-height:65vh;border-radius:12px'/>"
        f"<figcaption style='opacity:.7;font-size:.85rem'>"
        f"{artifact.aspect_ratio.value} · {artifact.model_id.value} · {artifact.origin.value}"
        f"</figcaption></figure>"
    )


def _history_choices(session: CreativeSession) -> list[tuple[str, str]]:
    artifacts = session.store.all()
    total = len(artifacts)
    choices: list[tuple[str, str]] = []
    for index, artifact in enumerate(artifacts):
        label = artifact.prompt if len(artifact.prompt) <= 40 else artifact.prompt[:37] + "..."
        choices.append((f"#{total - index} {label}", artifact.id))
    return choices


def _chat_messages(session: CreativeSession) -> list[dict[str, str]]:
    if session.assistant is None:
        return []
    rendered: list[dict[str, str]] = []
    for message in session.assistant.messages:
        text = message.text
        if message.attachment:
            text = f"{text}\n\n_(image attached)_" if text.strip() else "_(image attached)_"
        rendered.append({"role": message.role.value, "content": text})
    return rendered


def _latest_attachment(session: CreativeSession) -> Optional[str]:
    if session.assistant is None:
        return None
    for message in reversed(session.assistant.messages):
        if message.attachment:
            return message.attachment
    return None


def _latest_suggestions(session: CreativeSession) -> list[str]:
    if session.assistant is None:
        return []
    for message in reversed(session.assistant.messages):
        if message.role is ChatRole.ASSISTANT:
            return extract_prompt_suggestions(message.text)
    return []


def build_callbacks(
    config: AppConfig,
    session_factory: Optional[Callable[[], CreativeSession]] = None,
    gate: Optional[ApiKeyGate] = None,
    storage: Optional[StorageService] = None,
) -> dict[str, Any]:
    """Return a dictionary of Gradio callback functions.

    Workspace callbacks share one output layout:
    ``(session, viewer_html, history, prompt, analysis, status, undo, redo)``.
    """

    key_gate = gate or ApiKeyGate(config)
    storage_service = storage or StorageService(config.output_dir)
    factory = session_factory or (lambda: CreativeSession.from_config(config))

    def _ensure_session(session: Optional[CreativeSession]) -> CreativeSession:
        return session if session is not None else factory()

    def _settings(aspect_ratio: Any, model: Any, negative_prompt: Any) -> GenerationSettings:
        return GenerationSettings(
            aspect_ratio=_parse_aspect_ratio(aspect_ratio, config.default_aspect_ratio),
            model=_parse_model(model, config.default_model),
            negative_prompt=negative_prompt or None,
        )

    def _workspace_view(session: CreativeSession, status: str = "") -> tuple[Any, ...]:
        orchestrator = session.orchestrator
        if orchestrator.notice:
            status = f"⚠️ {orchestrator.notice}"
        analysis = ""
        if orchestrator.analysis:
            analysis = f"**Vision analysis:** {orchestrator.analysis}"
        return (
            session,
            _render_viewer(session),
            gr.update(choices=_history_choices(session), value=session.cursor.selected_id),
            session.prompt.text,
            analysis,
            status,
            gr.update(interactive=session.cursor.can_go_older()),
            gr.update(interactive=session.cursor.can_go_newer()),
        )

    def on_load(session: Optional[CreativeSession]) -> tuple[CreativeSession, list[dict[str, str]]]:
        session = _ensure_session(session)
        return session, _chat_messages(session)

    def on_connect_key(key: str) -> tuple[Any, Any, str]:
        try:
            key_gate.open_select_key(key)
        except ValueError as exc:
            return gr.update(visible=True), gr.update(visible=False), f"⚠️ {exc}"
        return gr.update(visible=False), gr.update(visible=True), "API key connected."

    async def on_send_message(
        session: Optional[CreativeSession],
        message: str,
        attachment_path: Optional[str],
        backend: Optional[str],
    ) -> tuple[CreativeSession, list[dict[str, str]], str, Optional[str], Any]:
        """Outputs: ``(session, chat, input, attachment, suggestions)``."""
        session = _ensure_session(session)
        if session.assistant is None:
            return session, [], message, attachment_path, gr.update(choices=[], value=None)

        attachment = file_to_data_url(attachment_path) if attachment_path else None
        reply = await session.assistant.send(message, attachment=attachment, backend=backend or None)
        if reply is None:
            return session, _chat_messages(session), message, attachment_path, gr.update()

        suggestions = _latest_suggestions(session)
        return (
            session,
            _chat_messages(session),
            "",
            None,
            gr.update(choices=suggestions, value=suggestions[0] if suggestions else None),
        )

    def on_clear_chat(session: Optional[CreativeSession]) -> tuple[CreativeSession, list[dict[str, str]], Any]:
        session = _ensure_session(session)
        if session.assistant is not None:
            session.assistant.clear()
        return session, _chat_messages(session), gr.update(choices=[], value=None)

    def on_use_prompt(session: Optional[CreativeSession], suggestion: str) -> tuple[CreativeSession, str]:
        session = _ensure_session(session)
        if suggestion:
            session.use_prompt(suggestion)
        return session, session.prompt.text

    def on_import_image(
        session: Optional[CreativeSession], prompt: str, attachment_path: Optional[str]
    ) -> tuple[Any, ...]:
        session = _ensure_session(session)
        session.type_prompt(prompt)
        # The attachment box is emptied after sending; fall back to the last image in the chat.
        content = file_to_data_url(attachment_path) if attachment_path else _latest_attachment(session)
        if not content:
            return _workspace_view(session, "Attach an image in the chat to import it.")
        artifact = session.import_image(content)
        return _workspace_view(session, f"Imported image #{len(session.store)} ({artifact.id}).")

    async def on_generate(
        session: Optional[CreativeSession],
        prompt: str,
        aspect_ratio: str,
        model: str,
        negative_prompt: str,
    ) -> tuple[Any, ...]:
        session = _ensure_session(session)
        session.type_prompt(prompt)
        if not key_gate.has_selected_api_key():
            return _workspace_view(session, KEY_REQUIRED_STATUS)
        if not (prompt or "").strip():
            return _workspace_view(session, "Enter a prompt first.")
        artifact = await session.generate(_settings(aspect_ratio, model, negative_prompt))
        return _workspace_view(session, "Image generated." if artifact else "")

    async def on_refine(
        session: Optional[CreativeSession],
        prompt: str,
        instruction: str,
        aspect_ratio: str,
        model: str,
        negative_prompt: str,
    ) -> tuple[Any, ...]:
        session = _ensure_session(session)
        session.type_prompt(prompt)
        if not key_gate.has_selected_api_key():
            return (*_workspace_view(session, KEY_REQUIRED_STATUS), instruction)
        if session.selected is None or not (instruction or "").strip():
            return (*_workspace_view(session, "Select an image and describe the edit."), instruction)
        artifact = await session.refine(instruction, _settings(aspect_ratio, model, negative_prompt))
        if artifact is None:
            return (*_workspace_view(session), instruction)
        return (*_workspace_view(session, "Edit applied."), "")

    async def on_analyze(session: Optional[CreativeSession], prompt: str) -> tuple[Any, ...]:
        session = _ensure_session(session)
        session.type_prompt(prompt)
        if not key_gate.has_selected_api_key():
            return _workspace_view(session, KEY_REQUIRED_STATUS)
        if session.selected is None:
            return _workspace_view(session, "Nothing to critique yet.")
        await session.analyze()
        return _workspace_view(session)

    def on_undo(session: Optional[CreativeSession], prompt: str) -> tuple[Any, ...]:
        session = _ensure_session(session)
        session.type_prompt(prompt)
        session.undo()
        return _workspace_view(session)

    def on_redo(session: Optional[CreativeSession], prompt: str) -> tuple[Any, ...]:
        session = _ensure_session(session)
        session.type_prompt(prompt)
        session.redo()
        return _workspace_view(session)

    def on_select(session: Optional[CreativeSession], prompt: str, artifact_id: Optional[str]) -> tuple[Any, ...]:
        session = _ensure_session(session)
        session.type_prompt(prompt)
        if artifact_id and artifact_id != session.cursor.selected_id:
            session.select(artifact_id)
        return _workspace_view(session)

    def on_download(session: Optional[CreativeSession]) -> Optional[str]:
        session = _ensure_session(session)
        artifact = session.selected
        if artifact is None:
            return None
        try:
            return str(storage_service.save_artifact(artifact))
        except (OSError, ValueError):
            logger.exception("Saving artifact %s failed", artifact.id)
            return None

    return {
        "on_load": on_load,
        "on_connect_key": on_connect_key,
        "on_send_message": on_send_message,
        "on_clear_chat": on_clear_chat,
        "on_use_prompt": on_use_prompt,
        "on_import_image": on_import_image,
        "on_generate": on_generate,
        "on_refine": on_refine,
        "on_analyze": on_analyze,
        "on_undo": on_undo,
        "on_redo": on_redo,
        "on_select": on_select,
        "on_download": on_download,
    }
