"""Stateless AI boundaries: translate, image prompt, image, chat, token verification.

Each answers JSON; failures answer `{"error": message}`.
"""

import logging

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from ..core.errors import MissingConfigError, ServiceError
from .auth import AuthError
from .services import Services, get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class TranslateRequest(_CamelModel):
    text: str = ""
    target_language: str = Field(default="", alias="targetLanguage")

class TranslateResponse(_CamelModel):
    translated_text: str = Field(alias="translatedText")

class ImagePromptRequest(_CamelModel):
    text: str = ""
    page_number: int = Field(default=1, alias="pageNumber")

class ImagePromptResponse(_CamelModel):
    image_prompt: str = Field(alias="imagePrompt")

class ImageRequest(_CamelModel):
    prompt: str = ""

class ImageResponse(_CamelModel):
    image_url: str = Field(alias="imageUrl")

class ChatMessage(_CamelModel):
    role: str
    content: str

class ChatRequest(_CamelModel):
    messages: list[ChatMessage]
    book_title: str = Field(default="", alias="bookTitle")
    book_context: str | None = Field(default=None, alias="bookContext")

class ChatResponse(_CamelModel):
    message: str


def error_response(e: Exception) -> JSONResponse:
    """Map the error taxonomy onto status codes."""
    if isinstance(e, AuthError):
        status = 401
    elif isinstance(e, ValueError):
        status = 400
    elif isinstance(e, MissingConfigError):
        status = 500
    elif isinstance(e, ServiceError):
        status = 502
    else:
        status = 500
    return JSONResponse({"error": str(e)}, status_code=status)


def _ok(model: BaseModel) -> JSONResponse:
    return JSONResponse(model.model_dump(by_alias=True))


@router.post("/translate")
async def translate(req: TranslateRequest, services: Services = Depends(get_services)):
    try:
        text = await services.translator.translate(req.text, req.target_language)
    except (ServiceError, MissingConfigError, ValueError) as e:
        logger.error("Translation error: %s", e)
        return error_response(e)
    return _ok(TranslateResponse(translated_text=text))


@router.post("/generate-image-prompts")
async def generate_image_prompt(req: ImagePromptRequest, services: Services = Depends(get_services)):
    try:
        if not req.text:
            raise ValueError("Text is required")
        prompt = await services.illustrator.describe(req.text, req.page_number)
    except (ServiceError, MissingConfigError, ValueError) as e:
        logger.error("Error generating image prompt: %s", e)
        return error_response(e)
    return _ok(ImagePromptResponse(image_prompt=prompt))


@router.post("/generate-image")
async def generate_image(req: ImageRequest, services: Services = Depends(get_services)):
    try:
        image_url = await services.illustrator.render(req.prompt)
    except (ServiceError, MissingConfigError, ValueError) as e:
        logger.error("Error generating image: %s", e)
        return error_response(e)
    return _ok(ImageResponse(image_url=image_url))


@router.post("/chat")
async def chat(req: ChatRequest, services: Services = Depends(get_services)):
    try:
        message = await services.assistant.reply(
            [m.model_dump() for m in req.messages], req.book_title, req.book_context
        )
    except (ServiceError, MissingConfigError, ValueError) as e:
        logger.error("Chat error: %s", e)
        return error_response(e)
    return _ok(ChatResponse(message=message))


@router.post("/verify-token")
async def verify_token(
    authorization: str | None = Header(default=None),
    services: Services = Depends(get_services),
):
    try:
        payload = await services.verifier.verify(authorization)
    except AuthError as e:
        return JSONResponse({"ok": False, "error": str(e)}, status_code=401)
    except (ServiceError, MissingConfigError) as e:
        logger.error("Token verification error: %s", e)
        return error_response(e)
    return JSONResponse({"ok": True, "payload": payload})
