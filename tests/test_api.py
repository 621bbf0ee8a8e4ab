"""Route tests over FastAPI's TestClient with in-memory services."""

import httpx
import pytest
from fastapi.testclient import TestClient

from app import app
from conftest import FakeCatalog, make_volume
from pagewise.api.auth import TokenVerifier
from pagewise.api.services import Services, set_services
from pagewise.core.translation import TranslationStatus
from pagewise.llm.base import LLMResponse
from pagewise.llm.openai_compat import OpenAICompatProvider
from pagewise.reader.catalog import CatalogClient
from pagewise.reader.session import ReadingSession
from pagewise.reader.speech import BrowserSpeechEngine, SpeechHandle
from pagewise.services.assistant import ReadingAssistant
from pagewise.services.translator import Translator


class FakeLLM:
    def __init__(self, text="assistant reply"):
        self.text = text
        self.messages = []

    async def generate(self, prompt, context=""):
        return await self.chat([{"role": "system", "content": context}, {"role": "user", "content": prompt}])

    async def chat(self, messages):
        self.messages.append(messages)
        return LLMResponse(text=self.text, model="fake")

    async def health_check(self):
        return True


@pytest.fixture
def services(translator, illustrator):
    llm = FakeLLM()
    engine = BrowserSpeechEngine()
    catalog = FakeCatalog(make_volume(description="word " * 1000))
    svc = Services(
        catalog=catalog,
        llm=llm,
        prompt_llm=llm,
        translator=translator,
        illustrator=illustrator,
        assistant=ReadingAssistant(llm),
        verifier=TokenVerifier(),
        speech_engine=engine,
    )
    svc.session = ReadingSession(
        session_id="s-api",
        catalog=catalog,
        translator=translator,
        illustrator=illustrator,
        speech=SpeechHandle(engine),
        restart_delay_s=0,
    )
    set_services(svc)
    return svc


@pytest.fixture
def client(services):
    return TestClient(app)


BOOK = {"id": "abc123", "title": "The Long Road", "authors": ["Ada Lane", "Ben Ruiz"]}


class TestCors:
    def test_preflight(self, client):
        resp = client.options(
            "/api/translate",
            headers={
                "Origin": "https://reader.example",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "content-type, authorization, x-requested-with",
            },
        )
        assert resp.status_code == 200
        assert resp.content == b""
        assert resp.headers["access-control-allow-origin"] == "*"
        allowed = resp.headers["access-control-allow-headers"].lower()
        for header in ("authorization", "content-type", "x-requested-with"):
            assert header in allowed

    def test_simple_request_has_cors_header(self, client):
        resp = client.post("/api/translate", json={"text": "Hi", "targetLanguage": "fr"},
                           headers={"Origin": "https://reader.example"})
        assert resp.headers["access-control-allow-origin"] == "*"


class TestFunctions:
    def test_translate(self, client):
        resp = client.post("/api/translate", json={"text": "Hello", "targetLanguage": "fr"})
        assert resp.status_code == 200
        assert resp.json() == {"translatedText": "[fr] Hello"}

    def test_translate_upstream_failure(self, client, translator):
        translator.fail.add("fr")
        resp = client.post("/api/translate", json={"text": "Hello", "targetLanguage": "fr"})
        assert resp.status_code == 502
        assert "error" in resp.json()

    def test_translate_requires_fields(self, client, services):
        services.translator = Translator(FakeLLM())
        resp = client.post("/api/translate", json={"text": "Hello"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Text and target language are required"}

    def test_missing_key_fails_every_request(self, client, services):
        llm = OpenAICompatProvider(model="m", endpoint="https://llm.example", api_key="",
                                   api_key_setting="LLM_API_KEY")
        services.translator = Translator(llm)
        for _ in range(2):
            resp = client.post("/api/translate", json={"text": "Hello", "targetLanguage": "fr"})
            assert resp.status_code == 500
            assert resp.json() == {"error": "LLM_API_KEY is not configured"}

    def test_image_prompt(self, client):
        resp = client.post("/api/generate-image-prompts", json={"text": "A ship.", "pageNumber": 3})
        assert resp.json() == {"imagePrompt": "scene of page 3"}

    def test_image(self, client):
        resp = client.post("/api/generate-image", json={"prompt": "a ship"})
        assert resp.json() == {"imageUrl": "https://images.example/1.png"}

    def test_chat(self, client, services):
        resp = client.post("/api/chat", json={
            "messages": [{"role": "user", "content": "Who is Ada?"}],
            "bookTitle": "The Long Road",
            "bookContext": "Ada walked.",
        })
        assert resp.json() == {"message": "assistant reply"}
        system = services.llm.messages[-1][0]["content"]
        assert "The Long Road" in system and "Ada walked." in system

    def test_verify_token_without_header(self, client):
        resp = client.post("/api/verify-token")
        assert resp.status_code == 401
        assert resp.json() == {"ok": False, "error": "Missing token"}

    def test_search(self, client, services):
        body = {"items": [{"id": "v1", "volumeInfo": {"title": "Dune", "authors": ["F. Herbert"]}}]}
        services.catalog = CatalogClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json=body)))
        resp = client.get("/api/search", params={"q": "dune"})
        assert resp.status_code == 200
        assert resp.json()["books"][0]["title"] == "Dune"


class TestSessionRoutes:
    def test_requires_book(self, client):
        assert client.post("/api/session/next").status_code == 400

    def test_reading_flow(self, client):
        state = client.post("/api/session/book", json=BOOK).json()
        assert state["total_pages"] == 3
        assert state["current_page"] == 0
        assert state["text"].startswith("# The Long Road")

        assert client.post("/api/session/next").json()["current_page"] == 1
        assert client.post("/api/session/page/99").json()["current_page"] == 2
        assert client.post("/api/session/page/-3").json()["current_page"] == 0

        state = client.post("/api/session/language", json={"language": "fr"}).json()
        assert state["translation"]["status"] == "ready"
        assert state["text"].startswith("[fr] # The Long Road")
        assert [n["title"] for n in state["notices"]] == ["Translation complete"]

    def test_unsupported_language(self, client):
        client.post("/api/session/book", json=BOOK)
        resp = client.post("/api/session/language", json={"language": "xx"})
        assert resp.status_code == 400

    def test_invalid_mode(self, client):
        client.post("/api/session/book", json=BOOK)
        assert client.post("/api/session/mode", json={"mode": "hologram"}).status_code == 422

    def test_navigation_refused_while_busy(self, client, services):
        client.post("/api/session/book", json=BOOK)
        services.session.translation.state.status = TranslationStatus.PENDING
        assert client.post("/api/session/next").status_code == 409

    def test_audio_playback(self, client):
        client.post("/api/session/book", json=BOOK)
        client.post("/api/session/mode", json={"mode": "audio"})
        state = client.post("/api/session/play").json()
        utterance = state["playback"]["utterance"]
        assert state["playback"]["is_playing"]
        assert utterance["rate"] == 0.9

        state = client.post("/api/session/speech-finished", json={"utterance_id": utterance["id"]}).json()
        assert not state["playback"]["is_playing"]

    def test_no_speech_capability(self, client):
        client.post("/api/session/book", json=BOOK)
        client.post("/api/session/capabilities", json={"speech": False})
        client.post("/api/session/mode", json={"mode": "audio"})
        state = client.post("/api/session/play").json()
        assert not state["playback"]["is_playing"]
        assert [n["title"] for n in state["notices"]] == ["Audio not supported"]

    def test_video_mode(self, client, illustrator):
        client.post("/api/session/book", json=BOOK)
        state = client.post("/api/session/mode", json={"mode": "video"}).json()
        assert state["playback"]["image_status"] == "ready"
        assert state["playback"]["image"] == "https://images.example/1.png"

        client.post("/api/session/mode", json={"mode": "text"})
        state = client.post("/api/session/mode", json={"mode": "video"}).json()
        assert state["playback"]["image"] == "https://images.example/1.png"
        assert illustrator.renders == 1

    def test_image_retry_requires_video(self, client):
        client.post("/api/session/book", json=BOOK)
        assert client.post("/api/session/image").status_code == 400

    def test_close_book(self, client):
        client.post("/api/session/book", json=BOOK)
        state = client.delete("/api/session/book").json()
        assert state["book"] is None
        assert state["total_pages"] == 0


class TestAuthGuard:
    def test_session_routes_need_token_when_enabled(self, client, services):
        def verify(request):
            if request.headers.get("authorization") == "Bearer good":
                return httpx.Response(200, json={"ok": True, "payload": {"sub": "u1"}})
            return httpx.Response(401, json={"ok": False, "error": "invalid"})

        services.verifier = TokenVerifier(verify_url="https://auth.example/verify", enabled=True,
                                          transport=httpx.MockTransport(verify))
        assert client.get("/api/session").status_code == 401
        assert client.get("/api/session", headers={"Authorization": "Bearer bad"}).status_code == 401
        assert client.get("/api/session", headers={"Authorization": "Bearer good"}).status_code == 200


class TestStartup:
    def test_lifespan_loads_config_and_services(self, monkeypatch, services):
        import app as app_module

        configs = []
        monkeypatch.setattr(app_module, "load_config", lambda: {"reader": {"page_size": 500}})
        monkeypatch.setattr(app_module, "init_services", lambda config: configs.append(config) or services)

        with TestClient(app) as client:
            assert client.get("/").json()["name"] == "Pagewise"
        assert configs == [{"reader": {"page_size": 500}}]
