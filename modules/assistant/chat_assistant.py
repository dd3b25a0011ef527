"""Ideation chat with pluggable LLM backends."""

from __future__ import annotations

import importlib
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from google.genai import types

from config.settings import AppConfig
from modules.pipelines.genai_client import create_client, image_part
from modules.utils.image_utils import split_data_url

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = (
    "Welcome to **GlowMint Muse**. I am your creative partner. "
    "Describe your vision and we will shape it into a prompt together."
)
CLEARED_MESSAGE = "Conversation cleared. What shall we create next?"
CHAT_ERROR_TEXT = "Sorry, I encountered an error connecting to the creative mind."
EMPTY_REPLY_TEXT = "I'm having trouble thinking of a response right now."
DEFAULT_ATTACHMENT_TEXT = "Analyze this image."

SYSTEM_INSTRUCTION = (
    "You are the 'GlowMint Muse', a creative AI assistant for the GlowMint Muse platform. "
    "Help users brainstorm artistic concepts, suggest prompts, and refine their visual ideas. "
    "Be concise, encouraging, and visually descriptive.\n\n"
    "IMPORTANT: When you suggest a specific prompt for image generation, you MUST wrap the "
    "prompt text in a markdown code block labeled 'prompt'.\n"
    "Example:\n```prompt\nA futuristic city with glowing neon lights, cyberpunk style, digital art\n```\n"
    "Do not put conversational text inside the prompt block. If the user asks to generate an "
    "image, describe exactly what the prompt should be inside this block."
)

SUGGESTION_CHIPS = [
    "Cyberpunk street food stall at night 🍜",
    "Oil painting of a cozy cottage 🏡",
    "Futuristic eco-friendly city 🌿",
    "Portrait of a robot philosopher 🤖",
    "Abstract geometric wallpaper 🎨",
]

_PROMPT_BLOCK = re.compile(r"```prompt[ \t]*\r?\n(.*?)```", re.DOTALL)


def extract_prompt_suggestions(text: str) -> list[str]:
    """Return the bodies of ```prompt fenced blocks in an assistant reply."""
    return [match.strip() for match in _PROMPT_BLOCK.findall(text or "") if match.strip()]


def backend_names(config: AppConfig) -> list[str]:
    """Backends a session built from ``config`` will offer, without creating clients."""
    names = ["gemini"]
    if config.openai_key:
        names.append("gpt")
    if config.anthropic_key:
        names.append("claude")
    return names


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(slots=True)
class ChatMessage:
    """One transcript entry."""

    role: ChatRole
    text: str
    attachment: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)


@dataclass(slots=True)
class BackendRequest:
    """Information passed to chat backends."""

    message: str
    history: List[ChatMessage]
    attachment: Optional[str]
    system_instruction: str
    metadata: Dict[str, Any]


BackendCallable = Callable[[BackendRequest], Awaitable[str]]


class ChatAssistant:
    """Keeps the ideation transcript and routes messages to an LLM backend."""

    def __init__(self, config: AppConfig, auto_register: bool = True) -> None:
        self.config = config
        self._backends: Dict[str, BackendCallable] = {}
        self.warnings: list[str] = []
        self.messages: List[ChatMessage] = [ChatMessage(ChatRole.ASSISTANT, WELCOME_MESSAGE)]
        if auto_register:
            self._auto_register_backends()

    def register_backend(self, name: str, backend: BackendCallable) -> None:
        """Register a chat backend."""
        self._backends[name.lower()] = backend

    def clear_backends(self) -> None:
        """Remove all backends (mainly for tests)."""
        self._backends.clear()

    def has_backend(self, name: str) -> bool:
        return name.lower() in self._backends

    def available_backends(self) -> list[str]:
        """Return the registered backends ordered by preference."""
        priority = {"gemini": 0, "gpt": 1, "claude": 2}
        return sorted(self._backends.keys(), key=lambda item: (priority.get(item, 99), item))

    def default_backend(self) -> str:
        preferred = (self.config.chat_backend or "").lower()
        if preferred in self._backends:
            return preferred
        choices = self.available_backends()
        return choices[0] if choices else "gemini"

    def clear(self) -> None:
        """Reset the transcript."""
        self.messages = [ChatMessage(ChatRole.ASSISTANT, CLEARED_MESSAGE)]

    async def send(
        self,
        message: str,
        attachment: Optional[str] = None,
        backend: Optional[str] = None,
    ) -> Optional[str]:
        """Append the user message, ask the backend and append its reply.

        Blank input without an attachment is ignored. Backend failures are
        answered with a fixed apology instead of raising.
        """
        text = message or ""
        if not text.strip() and not attachment:
            return None
        if not text.strip():
            # Stored turns always carry text; they are replayed as history parts.
            text = DEFAULT_ATTACHMENT_TEXT

        history = list(self.messages)
        self.messages.append(ChatMessage(ChatRole.USER, text, attachment=attachment))
        name = (backend or self.default_backend()).lower()
        request = BackendRequest(
            message=text,
            history=history,
            attachment=attachment,
            system_instruction=SYSTEM_INSTRUCTION,
            metadata=self.config.metadata,
        )
        try:
            reply = (await self._resolve_backend(name)(request) or "").strip() or EMPTY_REPLY_TEXT
        except Exception:  # noqa: BLE001
            logger.exception("Chat backend %s failed", name)
            reply = CHAT_ERROR_TEXT

        self.messages.append(ChatMessage(ChatRole.ASSISTANT, reply))
        return reply

    # Internal helpers ---------------------------------------------------------
    def _resolve_backend(self, name: str) -> BackendCallable:
        backend = self._backends.get(name)
        if backend is None:
            detail = "; ".join(self.warnings) or "no backend registered"
            raise RuntimeError(f"Chat backend '{name}' is unavailable: {detail}")
        return backend

    def _auto_register_backends(self) -> None:
        """Register backends automatically when dependencies are available."""
        self._register_gemini_backend()
        self._register_openai_backend()
        self._register_claude_backend()

    def _register_gemini_backend(self) -> None:
        # The key can arrive later through the key gate; build the client per call.
        def _parts(text: str, attachment: Optional[str]) -> list[Any]:
            parts: list[Any] = [types.Part.from_text(text=text)]
            if attachment:
                parts.append(image_part(attachment))
            return parts

        async def _gemini_backend(request: BackendRequest) -> str:
            client = create_client(self.config)
            history = [
                types.Content(
                    role="user" if item.role is ChatRole.USER else "model",
                    parts=_parts(item.text, item.attachment),
                )
                for item in request.history
            ]
            chat = client.aio.chats.create(
                model=self.config.chat_model,
                history=history,
                config=types.GenerateContentConfig(system_instruction=request.system_instruction),
            )
            content: Any = request.message
            if request.attachment:
                content = _parts(request.message, request.attachment)
            response = await chat.send_message(content)
            return response.text or ""

        self.register_backend("gemini", _gemini_backend)

    def _register_openai_backend(self) -> None:
        if not self.config.openai_key:
            return
        try:
            openai_module = importlib.import_module("openai")
        except ImportError as exc:
            self.warnings.append(f"Unable to import openai: {exc}")
            return

        base_url = self.config.metadata.get("openai_base_url")
        client_kwargs = {"api_key": self.config.openai_key}
        if base_url:
            client_kwargs["base_url"] = base_url
        client = openai_module.AsyncOpenAI(**client_kwargs)

        def _content(text: str, attachment: Optional[str]) -> Any:
            if not attachment:
                return text
            return [
                {"type": "text", "text": text},
                {"type": "image_url", "image_url": {"url": attachment}},
            ]

        async def _gpt_backend(request: BackendRequest) -> str:
            messages: list[dict[str, Any]] = [{"role": "system", "content": request.system_instruction}]
            for item in request.history:
                messages.append({"role": item.role.value, "content": _content(item.text, item.attachment)})
            messages.append({"role": "user", "content": _content(request.message, request.attachment)})
            completion = await client.chat.completions.create(
                model=self.config.metadata.get("openai_model", "gpt-4o-mini"),
                messages=messages,
                max_tokens=1024,
                temperature=0.85,
            )
            if not completion.choices:
                return ""
            return completion.choices[0].message.content or ""

        self.register_backend("gpt", _gpt_backend)

    def _register_claude_backend(self) -> None:
        if not self.config.anthropic_key:
            return
        try:
            anthropic_module = importlib.import_module("anthropic")
        except ImportError as exc:
            self.warnings.append(f"Unable to import anthropic: {exc}")
            return

        client = anthropic_module.AsyncAnthropic(api_key=self.config.anthropic_key)

        def _content(text: str, attachment: Optional[str]) -> list[dict[str, Any]]:
            blocks: list[dict[str, Any]] = []
            if attachment:
                media_type, data = split_data_url(attachment)
                blocks.append(
                    {"type": "image", "source": {"type": "base64", "media_type": media_type, "data": data}}
                )
            blocks.append({"type": "text", "text": text})
            return blocks

        async def _claude_backend(request: BackendRequest) -> str:
            history = list(request.history)
            # Claude conversations must open with a user turn.
            while history and history[0].role is ChatRole.ASSISTANT:
                history.pop(0)
            messages = [
                {"role": item.role.value, "content": _content(item.text, item.attachment)}
                for item in history
            ]
            messages.append({"role": "user", "content": _content(request.message, request.attachment)})
            response = await client.messages.create(
                model=self.config.metadata.get("claude_model", "claude-3-5-haiku-latest"),
                max_tokens=1024,
                system=request.system_instruction,
                messages=messages,
            )
            return "".join(
                getattr(block, "text", "") for block in response.content if getattr(block, "type", "") == "text"
            )

        self.register_backend("claude", _claude_backend)
