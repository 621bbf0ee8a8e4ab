import logging

from ..core.prompts import PromptBuilder, language_name
from ..llm.base import LLMProvider

logger = logging.getLogger(__name__)


class Translator:
    """Translates page text through a chat model, keeping markdown structure intact."""

    def __init__(self, llm: LLMProvider, prompts: PromptBuilder | None = None):
        self.llm = llm
        self.prompts = prompts or PromptBuilder()

    async def translate(self, text: str, target_language: str) -> str:
        if not text or not target_language:
            raise ValueError("Text and target language are required")

        logger.info(
            "Translation request: %d chars -> %s", len(text), language_name(target_language)
        )
        resp = await self.llm.generate(
            text, context=self.prompts.translation_system_prompt(target_language)
        )
        logger.info("Translation done: %d chars", len(resp.text))
        return resp.text
