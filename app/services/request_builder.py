"""
REQUEST BUILDER MODULE
======================

Pure functions that turn the UI's objects (project, thread, prompt, mode) into
Gemini request pieces, and Gemini responses back into what the UI needs.
Nothing in here does I/O; GeminiService calls these and then talks to the SDK.

TEXT REQUEST LAYOUT:
  contents = [last N history turns (oldest first)] + [one user turn]
  user turn parts = [one inline-data part per project file] + [prompt text]
  config = system instruction + temperature (+ thinking budget in High Reasoning)

The base64 payloads are decoded to bytes only here, when the SDK Part is built;
the SDK re-encodes them on the wire.
"""

import base64
import binascii
import logging
import re
from typing import Any, List, Optional, Sequence, Tuple

from google.genai import types
from pydantic import ValidationError

from app.models import ChatMessage, FileData, Project, ReasoningMode, Thread, VoiceReply
from app.utils.data_uri import extract_base64_payload, to_png_data_uri
from config import (
    DEEP_RESEARCH_PREFIX,
    DEFAULT_TITLE,
    IMAGE_ASPECT_RATIO,
    MAX_CHAT_HISTORY_MESSAGES,
    RELAY_ERROR_MESSAGE,
    TITLE_CONTEXT_CHARS,
    TITLE_MAX_LENGTH,
    TITLE_PROMPT,
    VOICE_FALLBACK_TRANSCRIPTION,
    VOICE_INSTRUCTION,
    GeminiSettings,
)


logger = logging.getLogger("J.A.R.V.I.S")

# Characters stripped from generated titles (markdown and quoting noise).
_TITLE_STRIP_PATTERN = re.compile(r"[#*`\"'()\[\]]")


class AssetGenerationError(RuntimeError):
    """Raised when an image response carries no inline image data."""


class InvalidPayloadError(ValueError):
    """Raised when a file or audio payload is not strict base64."""


# ------------------------------------------------------------------------------
# PARTS
# ------------------------------------------------------------------------------

def inline_part(data_base64: str, mime_type: str) -> types.Part:
    """Build an inline-data Part from a base64 payload. Raises InvalidPayloadError if it is not strict base64."""
    try:
        data = base64.b64decode(data_base64, validate=True)
    except binascii.Error as e:
        raise InvalidPayloadError(f"Payload for {mime_type} is not valid base64: {e}") from e
    return types.Part.from_bytes(data=data, mime_type=mime_type)


def file_to_part(file: FileData) -> types.Part:
    return inline_part(extract_base64_payload(file.content), file.type)


def project_file_parts(project: Project) -> List[types.Part]:
    return [file_to_part(f) for f in project.files]


def history_to_contents(
    history: Sequence[ChatMessage],
    window: int = MAX_CHAT_HISTORY_MESSAGES,
) -> List[types.Content]:
    """
    Map the last `window` messages to provider turns, oldest first.
    "user" stays "user"; every other role becomes "model".
    """
    if window <= 0:
        return []
    return [
        types.Content(
            role="user" if msg.role == "user" else "model",
            parts=[types.Part(text=msg.content)],
        )
        for msg in history[-window:]
    ]


def apply_reasoning_mode(prompt: str, mode: ReasoningMode) -> str:
    if mode == ReasoningMode.HIGH_REASONING:
        return f"{DEEP_RESEARCH_PREFIX}{prompt}"
    return prompt


# ------------------------------------------------------------------------------
# FULL REQUESTS
# ------------------------------------------------------------------------------

def build_text_request(
    project: Project,
    thread: Thread,
    prompt: str,
    mode: ReasoningMode,
    settings: GeminiSettings,
) -> Tuple[List[types.Content], types.GenerateContentConfig]:
    """Return (contents, config) for a streamed text generation."""
    contents = history_to_contents(thread.history, settings.history_window)
    contents.append(
        types.Content(
            role="user",
            parts=[*project_file_parts(project), types.Part(text=apply_reasoning_mode(prompt, mode))],
        )
    )

    thinking_config = None
    if mode == ReasoningMode.HIGH_REASONING:
        thinking_config = types.ThinkingConfig(thinking_budget=settings.thinking_budget)

    config = types.GenerateContentConfig(
        system_instruction=settings.system_instruction,
        temperature=settings.temperature,
        thinking_config=thinking_config,
    )
    return contents, config


def build_voice_request(
    audio_base64: str,
    mime_type: str,
    project: Project,
    settings: GeminiSettings,
) -> Tuple[List[types.Content], types.GenerateContentConfig]:
    """
    Return (contents, config) for a voice message: project files, then the audio,
    then the fixed instruction, all in one user turn. Thread history is not sent.
    """
    contents = [
        types.Content(
            role="user",
            parts=[
                *project_file_parts(project),
                inline_part(audio_base64, mime_type),
                types.Part(text=VOICE_INSTRUCTION),
            ],
        )
    ]
    config = types.GenerateContentConfig(
        system_instruction=settings.system_instruction,
        response_mime_type="application/json",
        response_schema=VoiceReply,
    )
    return contents, config


def build_title_prompt(history: Sequence[ChatMessage]) -> str:
    text = "\n".join(m.content for m in history)[:TITLE_CONTEXT_CHARS]
    return f"{TITLE_PROMPT}{text}"


def build_image_request(prompt: str) -> Tuple[List[types.Content], types.GenerateContentConfig]:
    contents = [types.Content(role="user", parts=[types.Part(text=prompt)])]
    config = types.GenerateContentConfig(
        image_config=types.ImageConfig(aspect_ratio=IMAGE_ASPECT_RATIO),
    )
    return contents, config


# ------------------------------------------------------------------------------
# RESPONSE HANDLING
# ------------------------------------------------------------------------------

def clean_title(raw: Optional[str]) -> str:
    """
    Turn the model's title text into a sidebar title: fall back to DEFAULT_TITLE
    when empty, strip # * ` " ' ( ) [ ], trim, and cap at TITLE_MAX_LENGTH
    (27 chars + "..." when longer).
    """
    title = _TITLE_STRIP_PATTERN.sub("", raw or DEFAULT_TITLE).strip()
    if len(title) > TITLE_MAX_LENGTH:
        title = title[:TITLE_MAX_LENGTH - 3] + "..."
    return title


def parse_voice_reply(text: Optional[str]) -> VoiceReply:
    """
    Parse the structured voice response. Never raises: anything that is not a
    valid {transcription, reply} object becomes a placeholder transcription with
    the raw text (or the relay error message) as the reply.
    """
    if text:
        try:
            return VoiceReply.model_validate_json(text)
        except ValidationError as e:
            logger.warning(f"Voice response was not valid structured JSON, relaying raw text: {e.error_count()} error(s)")
    else:
        logger.warning("Voice response was empty")
    return VoiceReply(
        transcription=VOICE_FALLBACK_TRANSCRIPTION,
        reply=text or RELAY_ERROR_MESSAGE,
    )


def extract_image_data_uri(response: Any) -> str:
    """
    Return the first inline-data part across all candidates as a PNG data-URI.
    Raises AssetGenerationError if there is none.
    """
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline_data = getattr(part, "inline_data", None)
            if inline_data is not None:
                return to_png_data_uri(inline_data.data)
    raise AssetGenerationError("Asset generation failed.")
