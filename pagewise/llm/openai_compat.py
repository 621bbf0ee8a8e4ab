import logging

from .base import LLMProvider, LLMResponse

logger = logging.getLogger(__name__)


class OpenAICompatProvider(LLMProvider):
    """Generic OpenAI-compatible API provider (OpenAI, AI gateways, LM Studio, LocalAI, etc.)."""

    name = "openai_compat"

    def _headers(self) -> dict:
        if not self.api_key:
            return {}
        return {"Authorization": f"Bearer {self.api_key}"}

    async def chat(self, messages: list[dict]) -> LLMResponse:
        self._require_api_key()
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

        data = await self._post_json(
            f"{self.endpoint}/v1/chat/completions", payload, headers=self._headers()
        )

        try:
            text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            raise self._malformed(data)
        tokens = (data.get("usage") or {}).get("total_tokens", 0)
        return LLMResponse(text=text, model=self.model, tokens_used=tokens)

    async def health_check(self) -> bool:
        try:
            async with self._client(timeout=5.0) as client:
                resp = await client.get(f"{self.endpoint}/v1/models", headers=self._headers())
                return resp.status_code == 200
        except Exception:
            logger.warning("OpenAI-compat endpoint not reachable at %s", self.endpoint)
            return False


class OpenAICompatImageProvider(OpenAICompatProvider):
    """Image generation over the OpenAI-compatible /v1/images/generations route."""

    name = "images"

    def __init__(self, *args, size: str = "1024x1024", **kwargs):
        super().__init__(*args, **kwargs)
        self.size = size

    async def generate_image(self, prompt: str) -> str:
        """Return a URL for an image rendered from the prompt (a data: URL for base64 answers)."""
        self._require_api_key()
        payload = {"model": self.model, "prompt": prompt, "n": 1, "size": self.size}

        data = await self._post_json(
            f"{self.endpoint}/v1/images/generations", payload, headers=self._headers()
        )

        try:
            item = data["data"][0]
        except (KeyError, IndexError, TypeError):
            raise self._malformed(data)
        if item.get("url"):
            return item["url"]
        if item.get("b64_json"):
            return f"data:image/png;base64,{item['b64_json']}"
        raise self._malformed(data)
