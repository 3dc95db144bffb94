"""
GEMINI SERVICE MODULE
=====================

GeminiService is the generation orchestrator: it takes what the UI sends
(project, thread, prompt, reasoning mode, optional API key), builds a Gemini
request with app.services.request_builder, sends it, and adapts the answer.

OPERATIONS:
  stream_text(...)            -> FragmentStream of text fragments (lazy, cancellable)
  process_voice_message(...)  -> VoiceReply (never fails on a bad JSON body)
  generate_title(history)     -> short cleaned title string
  generate_image(prompt)      -> "data:image/png;base64,..." or AssetGenerationError

API KEYS:
  Each call creates a client for the resolved key: the per-call key if given,
  else settings.api_key, else "". The service holds no per-request state, so
  concurrent calls for different threads do not interfere.

ERRORS:
  Transport/provider errors (google.genai.errors.APIError and friends) propagate
  to the caller. There are no retries here.
"""

import logging
from typing import Any, Callable, Optional, Sequence

from google import genai

from app.models import ChatMessage, Project, ReasoningMode, Thread, VoiceReply
from app.services.fragment_stream import FragmentStream
from app.services.request_builder import (
    AssetGenerationError,
    build_image_request,
    build_text_request,
    build_title_prompt,
    build_voice_request,
    clean_title,
    extract_image_data_uri,
    parse_voice_reply,
)
from app.utils.api_key import mask_api_key, resolve_api_key
from config import GeminiSettings


logger = logging.getLogger("J.A.R.V.I.S")

ClientFactory = Callable[[str], Any]


def _default_client_factory(api_key: str) -> genai.Client:
    return genai.Client(api_key=api_key)


# ==============================================================================
# GEMINI SERVICE CLASS
# ==============================================================================

class GeminiService:
    """
    Builds and dispatches Gemini requests for the chat UI.

    client_factory(api_key) must return an object shaped like genai.Client
    (client.aio.models and client.aio.aclose are used); tests pass a fake.
    """

    def __init__(self, settings: GeminiSettings, client_factory: Optional[ClientFactory] = None):
        self.settings = settings
        self._client_factory = client_factory or _default_client_factory

    def _get_client(self, custom_api_key: Optional[str]) -> Any:
        api_key = resolve_api_key(custom_api_key, self.settings.api_key)
        logger.debug(f"Using Gemini API key {mask_api_key(api_key)}")
        return self._client_factory(api_key)

    @staticmethod
    async def _close_client(client: Any) -> None:
        """Close the client's async HTTP connection pool."""
        await client.aio.aclose()

    # --------------------------------------------------------------------------
    # TEXT
    # --------------------------------------------------------------------------

    def stream_text(
        self,
        project: Project,
        thread: Thread,
        prompt: str,
        mode: ReasoningMode,
        custom_api_key: Optional[str] = None,
    ) -> FragmentStream:
        """
        Return a lazy stream of the model's answer. The request is built now
        (so malformed file payloads fail immediately) but nothing is sent until
        the first fragment is pulled. Closing the stream also closes the client
        it opened.
        """
        contents, config = build_text_request(project, thread, prompt, mode, self.settings)
        model = self.settings.text_model
        opened = []

        async def open_upstream():
            client = self._get_client(custom_api_key)
            opened.append(client)
            logger.info(
                f"Streaming from {model}: {len(contents) - 1} history turns, "
                f"{len(project.files)} files, mode={mode.value}"
            )
            return await client.aio.models.generate_content_stream(
                model=model,
                contents=contents,
                config=config,
            )

        async def close_client():
            while opened:
                await self._close_client(opened.pop())

        return FragmentStream(open_upstream, label=f"thread {thread.id}", on_close=close_client)

    # --------------------------------------------------------------------------
    # VOICE
    # --------------------------------------------------------------------------

    async def process_voice_message(
        self,
        audio_base64: str,
        mime_type: str,
        project: Project,
        thread: Thread,
        custom_api_key: Optional[str] = None,
    ) -> VoiceReply:
        """Transcribe a voice note and answer it. Only project files go along; thread history does not."""
        contents, config = build_voice_request(audio_base64, mime_type, project, self.settings)
        client = self._get_client(custom_api_key)
        logger.info(f"Voice message for thread {thread.id}: {mime_type}, {len(project.files)} files")
        try:
            response = await client.aio.models.generate_content(
                model=self.settings.text_model,
                contents=contents,
                config=config,
            )
        finally:
            await self._close_client(client)
        return parse_voice_reply(response.text)

    # --------------------------------------------------------------------------
    # TITLES
    # --------------------------------------------------------------------------

    async def generate_title(
        self,
        history: Sequence[ChatMessage],
        custom_api_key: Optional[str] = None,
    ) -> str:
        client = self._get_client(custom_api_key)
        try:
            response = await client.aio.models.generate_content(
                model=self.settings.text_model,
                contents=build_title_prompt(history),
            )
        finally:
            await self._close_client(client)
        title = clean_title(response.text)
        logger.info(f"Generated title: {title}")
        return title

    # --------------------------------------------------------------------------
    # IMAGES
    # --------------------------------------------------------------------------

    async def generate_image(self, prompt: str, custom_api_key: Optional[str] = None) -> str:
        contents, config = build_image_request(prompt)
        client = self._get_client(custom_api_key)
        try:
            response = await client.aio.models.generate_content(
                model=self.settings.image_model,
                contents=contents,
                config=config,
            )
        finally:
            await self._close_client(client)
        try:
            return extract_image_data_uri(response)
        except AssetGenerationError:
            logger.error(f"No inline image returned by {self.settings.image_model}")
            raise
