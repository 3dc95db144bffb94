"""
DATA-URI UTILITY
================

Files arrive from the browser as data-URIs ("data:text/plain;base64,SGVsbG8=").
Gemini wants the bare base64 payload plus a MIME type, and hands images back
as raw inline data that the UI wants as a data-URI again.
"""

import base64
from typing import Union


def extract_base64_payload(content: str) -> str:
    """
    Return the text after the first comma of a data-URI.

    Only the segment up to a second comma is kept (base64 never contains one).
    If there is no comma, or nothing follows it, the whole content is returned
    unchanged; such input is not valid base64 and fails when it is decoded.
    """
    segments = content.split(",")
    payload = segments[1] if len(segments) > 1 else ""
    return payload or content


def to_png_data_uri(data: Union[bytes, str, None]) -> str:
    """Wrap inline image data as a PNG data-URI. Bytes are base64-encoded; strings are assumed to be base64 already."""
    if isinstance(data, bytes):
        data = base64.b64encode(data).decode("ascii")
    return f"data:image/png;base64,{data or ''}"
