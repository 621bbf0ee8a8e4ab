import logging

from ..core.prompts import PromptBuilder
from ..llm.base import LLMProvider

logger = logging.getLogger(__name__)

CHAT_ROLES = ("user", "assistant")


class ReadingAssistant:
    """Book-scoped chat assistant; the client keeps the conversation and sends it whole."""

    def __init__(self, llm: LLMProvider, prompts: PromptBuilder | None = None):
        self.llm = llm
        self.prompts = prompts or PromptBuilder()

    async def reply(
        self, messages: list[dict], book_title: str, book_context: str | None = None
    ) -> str:
        logger.info("Chat request: %d messages about %r", len(messages), book_title)
        history = [
            {"role": m["role"], "content": m["content"]}
            for m in messages
            if m.get("role") in CHAT_ROLES
        ]
        system = {"role": "system", "content": self.prompts.chat_system_prompt(book_title, book_context)}
        resp = await self.llm.chat([system, *history])
        return resp.text
