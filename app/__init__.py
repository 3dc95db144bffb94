"""
J.A.R.V.I.S APPLICATION PACKAGE
===============================

This directory is the main Python package for the J.A.R.V.I.S backend:

  from app.main import app
  from app.models import Project, Thread, ReasoningMode
  from app.services.gemini_service import GeminiService

FILE STRUCTURE:
  app/
    __init__.py   - This file; marks 'app' as a package.
    main.py       - FastAPI app and HTTP endpoints (/chat/stream, /voice, /title, /image, /health).
    models.py     - Pydantic models for projects, threads, messages and request/response bodies.
    services/     - Gemini request building, the streaming channel and the orchestrating service.
    utils/        - Helpers: data-URI payloads, API key resolution and masking.
"""
