"""
J.A.R.V.I.S MAIN API
====================

This module defines the FastAPI application the Jarvis browser client talks to.
The server keeps no chat state: every request carries the project (with its
files) and the thread (with its history), and the server turns that into a
Gemini request through GeminiService.

ENDPOINTS:
  GET  /              - Returns API name and list of endpoints.
  GET  /health        - Returns status of the service (for monitoring).
  POST /chat/stream   - Streams the answer to a prompt as plain text fragments.
  POST /voice         - Transcribes a voice note and answers it ({transcription, reply}).
  POST /title         - Generates a short title for a thread's history.
  POST /image         - Generates an image and returns it as a PNG data-URI.

API KEYS:
  Each body may carry "api_key". If present it is used for that call only;
  otherwise the server's GEMINI_API_KEY is used.

STARTUP:
  On startup, the lifespan function builds GeminiSettings from the environment
  and creates the GeminiService every route uses.
"""


from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from contextlib import asynccontextmanager
import uvicorn
import logging

from app.models import (
    ImageRequest,
    ImageResponse,
    StreamRequest,
    TitleRequest,
    TitleResponse,
    VoiceReply,
    VoiceRequest,
)
from app.services.gemini_service import GeminiService
from app.services.request_builder import AssetGenerationError, InvalidPayloadError
from config import LOG_LEVEL, get_settings

# User-friendly message when the Gemini quota is exhausted.
RATE_LIMIT_MESSAGE = (
    "You've reached the API limit for this assistant. "
    "Wait a little and try again, or use your own API key."
)


def _is_rate_limit_error(exc: Exception) -> bool:
    """True if the exception is a Gemini rate limit (429 / RESOURCE_EXHAUSTED)."""
    if getattr(exc, "code", None) == 429:
        return True
    msg = str(exc).lower()
    return "429" in msg or "resource_exhausted" in msg or "rate limit" in msg


def _raise_http_error(action: str, exc: Exception):
    """Map a service exception to the HTTPException the UI expects."""
    if isinstance(exc, AssetGenerationError):
        logger.warning(f"{action}: {exc}")
        raise HTTPException(status_code=502, detail=str(exc))
    if isinstance(exc, InvalidPayloadError):
        # A file or audio payload that is not base64; the request never left the server.
        logger.warning(f"{action}: invalid input: {exc}")
        raise HTTPException(status_code=400, detail=str(exc))
    if _is_rate_limit_error(exc):
        logger.warning(f"Rate limit hit: {exc}")
        raise HTTPException(status_code=429, detail=RATE_LIMIT_MESSAGE)
    logger.error(f"Error {action}: {exc}", exc_info=True)
    raise HTTPException(status_code=500, detail=f"Error {action}: {str(exc)}")


# -----------------------------------------------------------------------------
# LOGGING
# -----------------------------------------------------------------------------
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger("J.A.R.V.I.S")


# -----------------------------------------------------------------------------
# GLOBAL SERVICE REFERENCE
# -----------------------------------------------------------------------------
# Set during startup (lifespan) and used by all route handlers.
gemini_service: GeminiService = None


def print_title():
    """Print the J.A.R.V.I.S banner to the console when the server starts."""
    CYAN    = "\033[96m"
    MAGENTA = "\033[95m"
    WHITE   = "\033[97m"
    BOLD    = "\033[1m"
    RESET   = "\033[0m"

    banner = f"""
{BOLD}{CYAN}   J . A . R . V . I . S
{MAGENTA}   ---------------------
      {WHITE}{BOLD}Project-aware Gemini relay{RESET}
"""
    print(banner)

# -------------------------------------------------------------------------
# LIFESPAN (STARTUP / SHUTDOWN)
# -------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build GeminiSettings from the environment and create the GeminiService.
    No connection is opened here; a Gemini client is created per request
    for whichever key that request resolves to.
    """
    global gemini_service

    print_title()
    logger.info("=" * 60)
    logger.info("J.A.R.V.I.S - Starting Up...")
    logger.info("=" * 60)

    try:
        settings = get_settings()
        gemini_service = GeminiService(settings)
        logger.info(f"Text model: {settings.text_model}")
        logger.info(f"Image model: {settings.image_model}")
        logger.info(f"History window: {settings.history_window} messages")
        logger.info("J.A.R.V.I.S is online and ready!")
        logger.info("=" * 60)
    except Exception as e:
        logger.error(f"Fatal error during startup: {e}", exc_info=True)
        raise

    yield

    logger.info("Shutting down J.A.R.V.I.S...")
    gemini_service = None


# -------------------------------------------------------------------------
# FASTAPI APP AND CORS
# -------------------------------------------------------------------------
app = FastAPI(
    title="J.A.R.V.I.S API",
    description="Just A Rather Very Intelligent System",
    lifespan=lifespan
)

# Allow any origin so the browser client can be served from another port.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _require_service() -> GeminiService:
    if not gemini_service:
        raise HTTPException(status_code=503, detail="Gemini service not initialized")
    return gemini_service


# =========================================================================
# API ENDPOINTS
# =========================================================================

@app.get("/")
async def root():
    """Return the API name and a short description of each endpoint (for discovery)."""
    return {
        "message": "J.A.R.V.I.S API",
        "endpoints": {
            "/chat/stream": "Streamed answer for a prompt in a project thread",
            "/voice": "Voice note transcription and reply",
            "/title": "Short title for a thread",
            "/image": "Image generation (PNG data-URI)",
            "/health": "System health check"
        }
    }


@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "gemini_service": gemini_service is not None,
    }


@app.post("/chat/stream")
async def chat_stream(request: StreamRequest):
    """
    Stream Jarvis's answer as text/plain.

    HOW IT WORKS:
    1. Builds the request: last 15 history messages, then the project files and
       the prompt (prefixed in High Reasoning mode).
    2. Pulls the first fragment before responding, so a bad key, a rate limit or
       a bad file payload still comes back as a proper 4xx/5xx status.
    3. Streams the rest as it arrives. If the browser disconnects, the Gemini
       stream is closed.

    A failure after the first fragment cuts the response short; the client
    should treat a truncated answer as a failed generation.
    """
    service = _require_service()

    try:
        stream = service.stream_text(
            request.project,
            request.thread,
            request.prompt,
            request.mode,
            request.api_key,
        )
    except Exception as e:
        _raise_http_error("processing chat", e)

    try:
        first_fragment = await stream.__anext__()
    except StopAsyncIteration:
        first_fragment = ""
    except Exception as e:
        await stream.aclose()
        _raise_http_error("processing chat", e)

    async def body():
        try:
            if first_fragment:
                yield first_fragment
            async for fragment in stream:
                yield fragment
        finally:
            await stream.aclose()

    return StreamingResponse(body(), media_type="text/plain; charset=utf-8")


@app.post("/voice", response_model=VoiceReply)
async def voice(request: VoiceRequest):
    """
    Transcribe a voice note and reply to it. Project files are sent along as
    context; the thread's history is not. A reply the model did not structure
    properly is still returned (with a placeholder transcription).
    """
    service = _require_service()
    try:
        return await service.process_voice_message(
            request.audio_base64,
            request.mime_type,
            request.project,
            request.thread,
            request.api_key,
        )
    except Exception as e:
        _raise_http_error("processing voice message", e)


@app.post("/title", response_model=TitleResponse)
async def title(request: TitleRequest):
    service = _require_service()
    try:
        return TitleResponse(title=await service.generate_title(request.history, request.api_key))
    except Exception as e:
        _raise_http_error("generating title", e)


@app.post("/image", response_model=ImageResponse)
async def image(request: ImageRequest):
    """Generate a square image. Returns 502 if the model answered without an image."""
    service = _require_service()
    try:
        return ImageResponse(data_uri=await service.generate_image(request.prompt, request.api_key))
    except Exception as e:
        _raise_http_error("generating image", e)


# -------------------------------------------------------------------------
# STANDALONE RUN (python -m app.main)
# -------------------------------------------------------------------------
def run():
    """Start the uvicorn server (same as run.py); used if someone does python -m app.main"""
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )

if __name__ == "__main__":
    run()
