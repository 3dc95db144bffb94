"""
FRAGMENT STREAM MODULE
======================

FragmentStream wraps Gemini's chunk stream as a pull-based, cancellable async
sequence of text fragments:

  - Lazy: the provider call is made on the first pull, not on construction.
  - The consumer sets the pace: one chunk is read from upstream per pull.
  - Empty chunks (no .text) are skipped; order is the provider's order.
  - aclose() stops reading, closes the upstream iterator and then runs the
    on_close hook (GeminiService closes its client there), so a consumer that
    walks away mid-answer leaves no HTTP connection to Gemini open.
  - Not restartable: once exhausted, failed or closed it stays finished.

Usage:
    async with service.stream_text(project, thread, prompt, mode) as stream:
        async for fragment in stream:
            ...
"""

import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Optional


logger = logging.getLogger("J.A.R.V.I.S")

UpstreamOpener = Callable[[], Awaitable[AsyncIterator[Any]]]
CloseHook = Callable[[], Awaitable[None]]


class FragmentStream:
    """Async iterator of non-empty text fragments read from a provider chunk stream."""

    def __init__(self, open_upstream: UpstreamOpener, label: str = "stream", on_close: Optional[CloseHook] = None):
        self._open_upstream = open_upstream
        self._on_close = on_close
        self._upstream: Optional[AsyncIterator[Any]] = None
        self._closed = False
        self.label = label
        self.fragments_delivered = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> "FragmentStream":
        return self

    async def __anext__(self) -> str:
        if self._closed:
            raise StopAsyncIteration
        try:
            if self._upstream is None:
                self._upstream = await self._open_upstream()
            while True:
                chunk = await self._upstream.__anext__()
                text = getattr(chunk, "text", None)
                if text:
                    self.fragments_delivered += 1
                    return text
        except StopAsyncIteration:
            logger.info(f"{self.label}: completed ({self.fragments_delivered} fragments)")
            await self.aclose()
            raise
        except Exception:
            logger.error(f"{self.label}: failed after {self.fragments_delivered} fragments")
            await self.aclose()
            raise

    async def aclose(self) -> None:
        """Stop consuming, close the upstream, then run on_close. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        upstream, self._upstream = self._upstream, None
        try:
            close = getattr(upstream, "aclose", None)
            if close is not None:
                await close()
        finally:
            if self._on_close is not None:
                await self._on_close()

    async def __aenter__(self) -> "FragmentStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
