"""
SERVICES PACKAGE
=================

Business logic lives here. The API layer (app.main) calls these services;
they don't handle HTTP, only request building, Gemini calls and response shaping.

MODULES:
    gemini_service  - GeminiService: stream_text, process_voice_message, generate_title, generate_image
    request_builder - pure functions: UI objects -> Gemini contents/config, responses -> UI values
    fragment_stream - FragmentStream: lazy, cancellable async sequence of text fragments
"""
