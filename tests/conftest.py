"""Shared fakes for the outbound services a reading session talks to."""

import asyncio

import pytest

from pagewise.core.errors import ServiceError
from pagewise.reader.catalog import Book
from pagewise.reader.session import ReadingSession
from pagewise.reader.speech import SpeechEngine, SpeechHandle


class FakeCatalog:
    def __init__(self, volume: dict | None = None, error: Exception | None = None):
        self.volume = volume
        self.error = error
        self.calls: list[str] = []

    async def get_volume(self, volume_id: str) -> dict:
        self.calls.append(volume_id)
        if self.error:
            raise self.error
        return self.volume


class FakeTranslator:
    """Echo translator; languages in `gates` wait for their event, languages in `fail` raise."""

    def __init__(self):
        self.calls: list[tuple[str, str]] = []
        self.gates: dict[str, asyncio.Event] = {}
        self.fail: set[str] = set()

    async def translate(self, text: str, target_language: str) -> str:
        self.calls.append((text, target_language))
        gate = self.gates.get(target_language)
        if gate is not None:
            await gate.wait()
        if target_language in self.fail:
            raise ServiceError("Translation failed: 500", failure_kind="upstream", status_code=500)
        return f"[{target_language}] {text}"


class FakeIllustrator:
    def __init__(self):
        self.calls: list[tuple] = []
        self.gate: asyncio.Event | None = None
        self.fail = False
        self.renders = 0

    async def describe(self, text: str, page_number: int) -> str:
        self.calls.append(("describe", page_number))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise ServiceError("Gemini API error: 500", status_code=500)
        return f"scene of page {page_number}"

    async def render(self, prompt: str) -> str:
        self.calls.append(("render", prompt))
        self.renders += 1
        return f"https://images.example/{self.renders}.png"


class RecordingSpeechEngine(SpeechEngine):
    """Counts how many utterances are active at once."""

    def __init__(self, supported: bool = True):
        self.supported = supported
        self.active = []
        self.spoken = []
        self.max_active = 0
        self.cancels = 0

    @property
    def available(self) -> bool:
        return self.supported

    def speak(self, utterance) -> None:
        self.active.append(utterance)
        self.spoken.append(utterance)
        self.max_active = max(self.max_active, len(self.active))

    def cancel(self) -> None:
        self.cancels += 1
        self.active.clear()


def make_volume(description: str = "", snippet: str = "", **info) -> dict:
    volume_info = {"title": "The Long Road", "authors": ["Ada Lane", "Ben Ruiz"], **info}
    if description:
        volume_info["description"] = description
    volume = {"id": "abc123", "volumeInfo": volume_info}
    if snippet:
        volume["searchInfo"] = {"textSnippet": snippet}
    return volume


@pytest.fixture
def book():
    return Book(id="abc123", title="The Long Road", authors=["Ada Lane", "Ben Ruiz"],
                description="A walk across the country.")


@pytest.fixture
def translator():
    return FakeTranslator()


@pytest.fixture
def illustrator():
    return FakeIllustrator()


@pytest.fixture
def engine():
    return RecordingSpeechEngine()


@pytest.fixture
def make_session(translator, illustrator, engine):
    """Factory: a session over a fake catalog serving `volume` (three pages by default)."""

    def _make(volume: dict | None = None, error: Exception | None = None, page_size: int = 2000):
        if volume is None and error is None:
            volume = make_volume(description="word " * 1000)
        return ReadingSession(
            session_id="s-1",
            catalog=FakeCatalog(volume, error),
            translator=translator,
            illustrator=illustrator,
            speech=SpeechHandle(engine),
            page_size=page_size,
            restart_delay_s=0,
        )

    return _make


@pytest.fixture
def run():
    return asyncio.run

