"""
DATA MODELS MODULE
==================

This file defines the Pydantic models used for API requests and responses and
for the objects the UI sends with every call (project, thread, messages).
FastAPI uses these to validate incoming JSON; GeminiService reads them to build
provider requests.

MODELS:
  ChatMessage     - One message in a thread (role + content).
  FileData        - A file attached to a project; content is a data-URI string.
  Project         - A workspace: id, name and its attached files.
  Thread          - One conversation: id, optional title, ordered history.
  ReasoningMode   - Standard or High Reasoning; only changes how a request is built.
  VoiceReply      - Structured voice result (transcription + reply). Also the
                    response schema declared to Gemini for voice requests.
  *Request / *Response - HTTP bodies for the endpoints in app.main.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

# ==============================================================================
# DOMAIN MODELS
# ==============================================================================

class ChatMessage(BaseModel):
    """
    A single message in a conversation (user or assistant).
    Stored in order inside a thread. No timestamp; order defines chronology.
    """
    role: str       # "user" (human) or "assistant" (Jarvis). Anything else is sent as "model".
    content: str    # The message text.


class FileData(BaseModel):
    """A file attached to a project. content looks like "data:<mime>;base64,<payload>"."""
    id: str
    name: str
    type: str       # Declared MIME type, e.g. "application/pdf".
    content: str


class Project(BaseModel):
    id: str
    name: str
    files: List[FileData] = Field(default_factory=list)


class Thread(BaseModel):
    id: str
    title: Optional[str] = None     # Filled lazily by POST /title.
    history: List[ChatMessage] = Field(default_factory=list)


class ReasoningMode(str, Enum):
    """Request-shaping toggle. Values match what the UI sends."""
    STANDARD = "Standard"
    HIGH_REASONING = "High Reasoning"


class VoiceReply(BaseModel):
    transcription: str
    reply: str

# ==============================================================================
# REQUEST / RESPONSE MODELS
# ==============================================================================

class StreamRequest(BaseModel):
    """
    Request body for POST /chat/stream.

    - prompt: The new user message. Must be non-empty (422 otherwise).
    - mode: "Standard" (default) or "High Reasoning".
    - api_key: Optional per-request Gemini key; falls back to the server's key.
    """
    project: Project
    thread: Thread
    prompt: str = Field(..., min_length=1)
    mode: ReasoningMode = ReasoningMode.STANDARD
    api_key: Optional[str] = None


class VoiceRequest(BaseModel):
    """Request body for POST /voice. audio_base64 is raw base64 (no data: prefix)."""
    audio_base64: str = Field(..., min_length=1)
    mime_type: str
    project: Project
    thread: Thread
    api_key: Optional[str] = None


class TitleRequest(BaseModel):
    history: List[ChatMessage]
    api_key: Optional[str] = None


class TitleResponse(BaseModel):
    title: str


class ImageRequest(BaseModel):
    prompt: str = Field(..., min_length=1)
    api_key: Optional[str] = None


class ImageResponse(BaseModel):
    data_uri: str   # "data:image/png;base64,..."
