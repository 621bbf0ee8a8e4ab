"""Configuration loading and the process-wide service objects (single-user v1)."""

import logging
import os
import uuid
from dataclasses import dataclass
from pathlib import Path

import yaml

from ..llm.base import LLMProvider
from ..llm.gemini_provider import GeminiProvider
from ..llm.ollama_provider import OllamaProvider
from ..llm.openai_compat import OpenAICompatImageProvider, OpenAICompatProvider
from ..reader.catalog import CatalogClient
from ..reader.session import ReadingSession
from ..reader.speech import BrowserSpeechEngine, SpeechHandle
from ..services.assistant import ReadingAssistant
from ..services.scenes import SceneIllustrator
from ..services.translator import Translator
from .auth import TokenVerifier

logger = logging.getLogger(__name__)

PROVIDERS = {
    "openai_compat": OpenAICompatProvider,
    "ollama": OllamaProvider,
    "gemini": GeminiProvider,
}

DEFAULTS = {
    "llm": {
        "provider": "openai_compat",
        "model": "gpt-4o-mini",
        "endpoint": "https://api.openai.com",
        "api_key_env": "LLM_API_KEY",
        "temperature": 0.3,
        "max_tokens": 4096,
    },
    "prompts": {
        "provider": "gemini",
        "model": "gemini-2.0-flash",
        "endpoint": "https://generativelanguage.googleapis.com",
        "api_key_env": "GEMINI_API_KEY",
        "temperature": 0.7,
        "max_tokens": 200,
    },
    "images": {
        "model": "dall-e-3",
        "endpoint": "https://api.openai.com",
        "api_key_env": "IMAGE_API_KEY",
        "size": "1024x1024",
    },
}

_config: dict = {}


@dataclass
class Services:
    catalog: CatalogClient
    llm: LLMProvider
    prompt_llm: LLMProvider
    translator: Translator
    illustrator: SceneIllustrator
    assistant: ReadingAssistant
    verifier: TokenVerifier
    speech_engine: BrowserSpeechEngine
    session: ReadingSession | None = None


_services: Services | None = None


def load_config(config_path: str = "config.yaml") -> dict:
    global _config
    path = Path(config_path)
    if path.exists():
        with open(path, "r") as f:
            _config = yaml.safe_load(f) or {}
    else:
        _config = {}
    return _config


def resolve_api_key(section: dict) -> str:
    """Keys are read from the environment variable the section names, never from the file."""
    env_name = section.get("api_key_env", "")
    return os.environ.get(env_name, "") if env_name else ""


def _section(config: dict, name: str) -> dict:
    return {**DEFAULTS.get(name, {}), **(config.get(name) or {})}


def init_provider(section: dict) -> LLMProvider:
    provider = section.get("provider", "openai_compat")
    cls = PROVIDERS.get(provider)
    if cls is None:
        logger.warning("Unknown provider %r, falling back to openai_compat", provider)
        cls = OpenAICompatProvider
    llm = cls(
        model=section["model"],
        endpoint=section["endpoint"],
        temperature=section.get("temperature", 0.7),
        max_tokens=section.get("max_tokens", 1024),
        api_key=resolve_api_key(section),
        api_key_setting=section.get("api_key_env", "api key"),
    )
    logger.info(
        "LLM initialized: provider=%s model=%s endpoint=%s", provider, llm.model, llm.endpoint
    )
    return llm


def init_services(config: dict) -> Services:
    global _services

    catalog_cfg = config.get("catalog") or {}
    catalog = CatalogClient(
        endpoint=catalog_cfg.get("endpoint", "https://www.googleapis.com/books/v1"),
        api_key=resolve_api_key(catalog_cfg),
        max_results=catalog_cfg.get("max_results", 12),
    )

    llm = init_provider(_section(config, "llm"))
    prompt_llm = init_provider(_section(config, "prompts"))

    images_cfg = _section(config, "images")
    image_provider = OpenAICompatImageProvider(
        model=images_cfg["model"],
        endpoint=images_cfg["endpoint"],
        api_key=resolve_api_key(images_cfg),
        api_key_setting=images_cfg.get("api_key_env", "api key"),
        size=images_cfg.get("size", "1024x1024"),
    )

    auth_cfg = config.get("auth") or {}
    verifier = TokenVerifier(
        verify_url=auth_cfg.get("verify_url", ""),
        enabled=auth_cfg.get("enabled", False),
    )

    translator = Translator(llm)
    illustrator = SceneIllustrator(prompt_llm, image_provider)
    _services = Services(
        catalog=catalog,
        llm=llm,
        prompt_llm=prompt_llm,
        translator=translator,
        illustrator=illustrator,
        assistant=ReadingAssistant(llm),
        verifier=verifier,
        speech_engine=BrowserSpeechEngine(),
    )
    _services.session = new_session(_services, config)
    return _services


def new_session(services: Services, config: dict | None = None) -> ReadingSession:
    reader_cfg = (config if config is not None else _config).get("reader") or {}
    speech = SpeechHandle(
        services.speech_engine,
        rate=reader_cfg.get("speech_rate", 0.9),
        pitch=reader_cfg.get("speech_pitch", 1.0),
    )
    return ReadingSession(
        session_id=str(uuid.uuid4()),
        catalog=services.catalog,
        translator=services.translator,
        illustrator=services.illustrator,
        speech=speech,
        page_size=reader_cfg.get("page_size", 2000),
        restart_delay_s=reader_cfg.get("restart_delay_s", 0.1),
    )


def set_services(services: Services) -> None:
    global _services
    _services = services


def get_services() -> Services:
    if _services is None:
        raise RuntimeError("Services are not initialized; call init_services() first")
    return _services
