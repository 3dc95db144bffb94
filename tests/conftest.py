"""
Shared fixtures: a recording stand-in for genai.Client so no test touches the network.
"""

from types import SimpleNamespace

import pytest

from app.models import ChatMessage, FileData, Project, Thread
from app.services.gemini_service import GeminiService
from config import GeminiSettings


class FakeModels:
    """Mimics client.aio.models: records every call and replays canned output."""

    def __init__(self):
        self.calls = []
        self.stream_chunks = []
        self.stream_error = None    # raised after all stream_chunks were yielded
        self.response = SimpleNamespace(text="", candidates=[])
        self.error = None           # raised instead of answering
        self.chunks_yielded = 0
        self.stream_closed = False

    async def generate_content_stream(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return self._stream()

    async def _stream(self):
        try:
            for text in self.stream_chunks:
                self.chunks_yielded += 1
                yield SimpleNamespace(text=text)
            if self.stream_error:
                raise self.stream_error
        finally:
            self.stream_closed = True

    async def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return self.response


class FakeAsyncClient:
    """Mimics client.aio: the models namespace plus aclose()."""

    def __init__(self, models):
        self.models = models
        self.closed = False

    async def aclose(self):
        self.closed = True


class FakeClientFactory:
    def __init__(self, models):
        self.models = models
        self.api_keys = []
        self.clients = []

    def __call__(self, api_key):
        self.api_keys.append(api_key)
        client = SimpleNamespace(aio=FakeAsyncClient(self.models))
        self.clients.append(client)
        return client

    @property
    def all_closed(self):
        return all(client.aio.closed for client in self.clients)


class FakeRateLimitError(Exception):
    code = 429


@pytest.fixture
def settings():
    return GeminiSettings(api_key="server-key", text_model="text-model", image_model="image-model")


@pytest.fixture
def fake_models():
    return FakeModels()


@pytest.fixture
def client_factory(fake_models):
    return FakeClientFactory(fake_models)


@pytest.fixture
def service(settings, client_factory):
    return GeminiService(settings, client_factory=client_factory)


@pytest.fixture
def text_file():
    return FileData(id="f1", name="hello.txt", type="text/plain", content="data:text/plain;base64,SGVsbG8=")


@pytest.fixture
def project(text_file):
    return Project(
        id="p1",
        name="Research",
        files=[
            text_file,
            FileData(id="f2", name="notes.md", type="text/markdown", content="data:text/markdown;base64,IyBOb3Rlcw=="),
        ],
    )


@pytest.fixture
def empty_project():
    return Project(id="p0", name="Empty")


def make_thread(n_messages, thread_id="t1"):
    history = [
        ChatMessage(role="user" if i % 2 == 0 else "assistant", content=f"message {i}")
        for i in range(n_messages)
    ]
    return Thread(id=thread_id, history=history)


@pytest.fixture
def thread():
    return make_thread(4)
