"""
CONFIGURATION MODULE
====================

PURPOSE:
  Central place for all J.A.R.V.I.S settings: the Gemini API key, model names,
  the request-shaping constants (history window, temperature, thinking budget)
  and the Jarvis system instruction.

WHAT THIS FILE DOES:
  - Loads environment variables from .env (so API keys stay out of code).
  - Exposes GEMINI_API_KEY, GEMINI_TEXT_MODEL, GEMINI_IMAGE_MODEL and LOG_LEVEL.
  - Holds the fixed protocol constants every request is built from.
  - Builds a GeminiSettings object (get_settings) that is handed to GeminiService.
    The service never reads the environment itself; whatever it needs is in
    the settings it was constructed with.

USAGE:
  Import what you need: `from config import get_settings, JARVIS_SYSTEM_PROMPT`
"""

import os
import logging
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field


# -----------------------------------------------------------------------------
# LOGGING
# -----------------------------------------------------------------------------
logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# ENVIRONMENT
# -----------------------------------------------------------------------------
# Load environment variables from .env file (if it exists).
load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


# ============================================================================
# GEMINI API CONFIGURATION
# ============================================================================
# One process-wide key. GEMINI_API_KEY wins; API_KEY is accepted for setups that
# share a single .env with the browser build. A request may still override the
# key per call (the UI lets the user paste their own).

def _load_gemini_api_key() -> str:
    """Return the first non-empty key from GEMINI_API_KEY, then API_KEY; "" if neither is set."""
    for name in ("GEMINI_API_KEY", "API_KEY"):
        key = os.getenv(name, "").strip()
        if key:
            return key
    return ""


GEMINI_API_KEY = _load_gemini_api_key()
GEMINI_TEXT_MODEL = os.getenv("GEMINI_TEXT_MODEL", "gemini-3-flash-preview")
GEMINI_IMAGE_MODEL = os.getenv("GEMINI_IMAGE_MODEL", "gemini-2.5-flash-image")

# ============================================================================
# REQUEST SHAPING
# ============================================================================
# Only the most recent messages of a thread are sent with a text request.
# Older messages stay in the thread but never reach the model.
MAX_CHAT_HISTORY_MESSAGES = 15

# Low temperature for deterministic-leaning answers.
TEXT_TEMPERATURE = 0.1

# Thinking budget (tokens) attached to High Reasoning requests only.
HIGH_REASONING_THINKING_BUDGET = 24576

# Prepended to the prompt in High Reasoning mode. Trailing space is part of it.
DEEP_RESEARCH_PREFIX = "[MODE: DEEP RESEARCH. EXHAUSTIVE ANALYSIS REQUIRED.] "

# ============================================================================
# TITLES, VOICE AND IMAGES
# ============================================================================
TITLE_CONTEXT_CHARS = 1000  # Characters of joined history sent for a title
TITLE_MAX_LENGTH = 30       # Longer titles are cut to TITLE_MAX_LENGTH - 3 plus "..."
DEFAULT_TITLE = "Node Analysis"
TITLE_PROMPT = "Generate a concise 3-word title for this context in Roman script: "

VOICE_INSTRUCTION = (
    "Transcribe the audio then provide a structural technical response "
    "in JSON format following the Jarvis protocol."
)
VOICE_FALLBACK_TRANSCRIPTION = "Audio processed."
RELAY_ERROR_MESSAGE = "Communication relay error."

IMAGE_ASPECT_RATIO = "1:1"

# ============================================================================
# JARVIS PERSONALITY CONFIGURATION
# ============================================================================
# Sent as the system instruction with text and voice requests. The persona name,
# the ban on mentioning other AI systems, the formatting rules and the language
# policy are all part of the contract with the UI.

JARVIS_SYSTEM_PROMPT = """Persona: You are Jarvis, a high-intelligence system assistant.

Mandatory Protocol: Jarvis is an independent AI assistant that relies exclusively on user-provided data; it must not reference, imply, compare to, or claim usage of any other AI systems, models, or external knowledge sources, and must present all outputs as its own analysis based solely on the given data.

Operational Guidelines:
1. Contextual Priority: Always analyze and prioritize information from the provided project files/data.
2. Structural Integrity: Deliver information using professional technical formatting. Use Markdown for:
   - TABLES: Mandatory for categorical, comparative, or list-based data. Ensure proper | Header | Header | format.
   - CODE BLOCKS: Use for technical snippets or structured JSON/XML data.
   - HEADERS: Use #, ##, ### for logical separation.
3. Communication Style: Concise, factual, and analytical. Do not narrate your own behavior.
4. Language Protocol:
   - Primary: English.
   - Secondary: Romanized Urdu (Hinglish).
   - Prohibition: No Devanagari or pure Hindi scripts."""


# ============================================================================
# SETTINGS OBJECT
# ============================================================================

class GeminiSettings(BaseModel):
    """
    Everything GeminiService needs that may differ between deployments.

    Built once at startup (see get_settings) and passed into the service, so tests
    can construct one directly without touching the environment.
    """
    api_key: str = ""
    text_model: str = GEMINI_TEXT_MODEL
    image_model: str = GEMINI_IMAGE_MODEL
    temperature: float = TEXT_TEMPERATURE
    history_window: int = Field(default=MAX_CHAT_HISTORY_MESSAGES, ge=1)
    thinking_budget: int = HIGH_REASONING_THINKING_BUDGET
    system_instruction: str = JARVIS_SYSTEM_PROMPT


def get_settings(api_key: Optional[str] = None) -> GeminiSettings:
    """Build GeminiSettings from the values loaded above. api_key overrides GEMINI_API_KEY."""
    settings = GeminiSettings(api_key=api_key if api_key is not None else GEMINI_API_KEY)
    if not settings.api_key:
        logger.warning("GEMINI_API_KEY not set. Requests without a per-call key will be rejected by the provider.")
    return settings
