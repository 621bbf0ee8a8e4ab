import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from pydantic import BaseModel, Field

from ..core.errors import MissingConfigError, ServiceError
from ..core.prompts import is_supported_language
from ..core.transitions import Mode
from ..reader.catalog import NO_DESCRIPTION, PLACEHOLDER_IMAGE, UNKNOWN_AUTHOR, Book
from ..reader.session import ReadingSession
from .auth import AuthError
from .services import Services, get_services

logger = logging.getLogger(__name__)


async def require_user(
    authorization: str | None = Header(default=None),
    services: Services = Depends(get_services),
) -> dict | None:
    """Claims of the caller when `auth.enabled`; otherwise sessions are open."""
    if not services.verifier.enabled:
        return None
    try:
        return await services.verifier.verify(authorization)
    except AuthError as e:
        raise HTTPException(401, str(e))
    except (ServiceError, MissingConfigError) as e:
        logger.error("Token verification unavailable: %s", e)
        raise HTTPException(503, "Token verification unavailable.")


router = APIRouter(prefix="/api")
session_router = APIRouter(prefix="/api/session", dependencies=[Depends(require_user)])


# ── Request/Response models ────────────────────────────────────────────────

class BookRequest(BaseModel):
    id: str = Field(min_length=1)
    title: str = "Untitled"
    authors: list[str] = [UNKNOWN_AUTHOR]
    description: str = NO_DESCRIPTION
    image_url: str = PLACEHOLDER_IMAGE
    preview_link: str = ""

class LanguageRequest(BaseModel):
    language: str

class ModeRequest(BaseModel):
    mode: Mode

class SpeechFinishedRequest(BaseModel):
    utterance_id: int

class CapabilitiesRequest(BaseModel):
    speech: bool = True


def _session(services: Services) -> ReadingSession:
    if services.session is None:
        raise HTTPException(503, "Reading session is not initialized.")
    return services.session


def _loaded(services: Services) -> ReadingSession:
    session = _session(services)
    if not session.has_document:
        raise HTTPException(400, "No book selected.")
    return session


def _state(session: ReadingSession) -> dict:
    state = session.snapshot()
    state["notices"] = [asdict(n) for n in session.notices.drain()]
    return state


# ── Catalog ────────────────────────────────────────────────────────────────

@router.get("/search")
async def search_books(q: str = Query(min_length=1), services: Services = Depends(get_services)) -> dict:
    try:
        books = await services.catalog.search(q)
    except ServiceError as e:
        logger.error("Error searching books: %s", e)
        raise HTTPException(502, "Search failed. Please try again.")
    return {"books": [asdict(b) for b in books]}


@router.get("/health")
async def health(services: Services = Depends(get_services)) -> dict:
    session = services.session
    return {
        "status": "ok",
        "llm_connected": await services.llm.health_check(),
        "prompt_llm_connected": await services.prompt_llm.health_check(),
        "session_active": session is not None and session.has_document,
    }


# ── Reading session ────────────────────────────────────────────────────────

@session_router.get("")
async def get_session_state(services: Services = Depends(get_services)) -> dict:
    return _state(_session(services))


@session_router.post("/book")
async def select_book(req: BookRequest, services: Services = Depends(get_services)) -> dict:
    session = _session(services)
    await session.select_book(Book(**req.model_dump()))
    return _state(session)


@session_router.delete("/book")
async def close_book(services: Services = Depends(get_services)) -> dict:
    session = _session(services)
    session.close_book()
    return _state(session)


async def _navigate(session: ReadingSession, index: int) -> dict:
    if session.busy:
        raise HTTPException(409, "Wait for the current translation or generation to finish.")
    await session.go_to_page(index)
    return _state(session)


@session_router.post("/page/{index}")
async def go_to_page(index: int, services: Services = Depends(get_services)) -> dict:
    session = _loaded(services)
    return await _navigate(session, index)


@session_router.post("/next")
async def next_page(services: Services = Depends(get_services)) -> dict:
    session = _loaded(services)
    return await _navigate(session, session.current_page + 1)


@session_router.post("/previous")
async def previous_page(services: Services = Depends(get_services)) -> dict:
    session = _loaded(services)
    return await _navigate(session, session.current_page - 1)


@session_router.post("/language")
async def select_language(req: LanguageRequest, services: Services = Depends(get_services)) -> dict:
    if not is_supported_language(req.language):
        raise HTTPException(400, f"Unsupported language: {req.language}")
    session = _loaded(services)
    await session.select_language(req.language)
    return _state(session)


@session_router.post("/mode")
async def set_mode(req: ModeRequest, services: Services = Depends(get_services)) -> dict:
    session = _loaded(services)
    await session.set_mode(req.mode)
    return _state(session)


@session_router.post("/play")
async def play(services: Services = Depends(get_services)) -> dict:
    session = _loaded(services)
    session.play()
    return _state(session)


@session_router.post("/pause")
async def pause(services: Services = Depends(get_services)) -> dict:
    session = _session(services)
    session.pause()
    return _state(session)


@session_router.post("/image")
async def generate_image(services: Services = Depends(get_services)) -> dict:
    session = _loaded(services)
    if session.mode != Mode.VIDEO:
        raise HTTPException(400, "Switch to video mode first.")
    await session.retry_image()
    return _state(session)


@session_router.post("/speech-finished")
async def speech_finished(req: SpeechFinishedRequest, services: Services = Depends(get_services)) -> dict:
    session = _session(services)
    session.speech_finished(req.utterance_id)
    return _state(session)


@session_router.post("/capabilities")
async def report_capabilities(req: CapabilitiesRequest, services: Services = Depends(get_services)) -> dict:
    services.speech_engine.supported = req.speech
    logger.info("Client capabilities: speech=%s", req.speech)
    return _state(_session(services))
