import logging

from ..core.prompts import PromptBuilder
from ..llm.base import LLMProvider
from ..llm.openai_compat import OpenAICompatImageProvider

logger = logging.getLogger(__name__)


class SceneIllustrator:
    """Turns a page of text into an illustration: text -> image prompt -> image URL."""

    def __init__(
        self,
        prompt_llm: LLMProvider,
        image_provider: OpenAICompatImageProvider,
        prompts: PromptBuilder | None = None,
    ):
        self.prompt_llm = prompt_llm
        self.image_provider = image_provider
        self.prompts = prompts or PromptBuilder()

    async def describe(self, text: str, page_number: int) -> str:
        """Ask the prompt model for a short visual description of the excerpt."""
        logger.info("Generating image prompt for page %d", page_number)
        resp = await self.prompt_llm.generate(self.prompts.image_prompt_request(text))
        prompt = resp.text.strip()
        logger.debug("Image prompt for page %d: %s", page_number, prompt)
        return prompt

    async def render(self, prompt: str) -> str:
        if not prompt:
            raise ValueError("Prompt is required")
        logger.info("Rendering image (%d char prompt)", len(prompt))
        return await self.image_provider.generate_image(prompt)
