"""
API KEY UTILITY
===============

Every Gemini call resolves its key the same way: a non-empty per-call key from
the UI, else the process-wide key from GeminiSettings, else "". An empty key is
passed through as-is; the provider rejects it.
"""

from typing import Optional


def resolve_api_key(custom_api_key: Optional[str], configured_api_key: Optional[str]) -> str:
    return custom_api_key or configured_api_key or ""


def mask_api_key(api_key: str) -> str:
    """Return a log-safe form of the key: "****abcd", or "<none>" for an empty key."""
    if not api_key:
        return "<none>"
    if len(api_key) <= 4:
        return "****"
    return f"****{api_key[-4:]}"
