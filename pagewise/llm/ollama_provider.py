import logging

from .base import LLMProvider, LLMResponse

logger = logging.getLogger(__name__)


class OllamaProvider(LLMProvider):
    """Ollama local model provider (http://localhost:11434 by default)."""

    name = "ollama"
    requires_api_key = False

    async def chat(self, messages: list[dict]) -> LLMResponse:
        payload = {
            "model": self.model,
            "messages": messages,
            "stream": False,
            "options": {
                "temperature": self.temperature,
                "num_predict": self.max_tokens,
            },
        }

        data = await self._post_json(f"{self.endpoint}/api/chat", payload)

        text = (data.get("message") or {}).get("content", "")
        if not text:
            raise self._malformed(data)
        tokens = data.get("eval_count") or 0
        return LLMResponse(text=text, model=self.model, tokens_used=tokens)

    async def health_check(self) -> bool:
        try:
            async with self._client(timeout=5.0) as client:
                resp = await client.get(f"{self.endpoint}/api/tags")
                return resp.status_code == 200
        except Exception:
            logger.warning("Ollama not reachable at %s", self.endpoint)
            return False
