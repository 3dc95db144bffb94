"""
Tests for FragmentStream on its own (no service involved).
"""

from types import SimpleNamespace

import pytest

from app.services.fragment_stream import FragmentStream


class ChunkIterator:
    """Plain async iterator without aclose()."""

    def __init__(self, texts):
        self._texts = list(texts)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._texts:
            raise StopAsyncIteration
        return SimpleNamespace(text=self._texts.pop(0))


def opener(upstream, opened):
    async def open_upstream():
        opened.append(True)
        return upstream
    return open_upstream


@pytest.mark.asyncio
async def test_iterates_non_empty_fragments_in_order():
    opened = []
    stream = FragmentStream(opener(ChunkIterator(["a", "", "b", "c"]), opened))
    assert [f async for f in stream] == ["a", "b", "c"]
    assert stream.fragments_delivered == 3
    assert stream.closed


@pytest.mark.asyncio
async def test_close_before_first_pull_never_opens_upstream():
    opened = []
    stream = FragmentStream(opener(ChunkIterator(["a"]), opened))
    await stream.aclose()
    assert [f async for f in stream] == []
    assert opened == []


@pytest.mark.asyncio
async def test_context_manager_closes():
    opened = []
    async with FragmentStream(opener(ChunkIterator(["a", "b"]), opened)) as stream:
        assert await stream.__anext__() == "a"
    assert stream.closed
    with pytest.raises(StopAsyncIteration):
        await stream.__anext__()


@pytest.mark.asyncio
async def test_aclose_is_idempotent():
    closes = []

    async def upstream():
        try:
            yield SimpleNamespace(text="a")
            yield SimpleNamespace(text="b")
        finally:
            closes.append(True)

    stream = FragmentStream(opener(upstream(), []))
    assert await stream.__anext__() == "a"
    await stream.aclose()
    await stream.aclose()
    assert closes == [True]


@pytest.mark.asyncio
async def test_not_restartable():
    stream = FragmentStream(opener(ChunkIterator(["a"]), []))
    assert [f async for f in stream] == ["a"]
    assert [f async for f in stream] == []


@pytest.mark.asyncio
async def test_on_close_runs_once_after_upstream_closed():
    events = []

    async def upstream():
        try:
            yield SimpleNamespace(text="a")
            yield SimpleNamespace(text="b")
        finally:
            events.append("upstream")

    async def on_close():
        events.append("on_close")

    stream = FragmentStream(opener(upstream(), []), on_close=on_close)
    assert await stream.__anext__() == "a"
    await stream.aclose()
    await stream.aclose()
    assert events == ["upstream", "on_close"]


@pytest.mark.asyncio
async def test_on_close_runs_when_upstream_errors():
    closed = []

    async def failing():
        raise ConnectionError("reset")

    async def on_close():
        closed.append(True)

    stream = FragmentStream(failing, on_close=on_close)
    with pytest.raises(ConnectionError):
        await stream.__anext__()
    assert closed == [True]
