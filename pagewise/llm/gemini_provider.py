import logging

from .base import LLMProvider, LLMResponse

logger = logging.getLogger(__name__)


class GeminiProvider(LLMProvider):
    """Google Gemini generateContent API (https://generativelanguage.googleapis.com)."""

    name = "gemini"

    async def chat(self, messages: list[dict]) -> LLMResponse:
        self._require_api_key()

        system = [m["content"] for m in messages if m["role"] == "system"]
        contents = [
            {
                "role": "model" if m["role"] == "assistant" else "user",
                "parts": [{"text": m["content"]}],
            }
            for m in messages
            if m["role"] != "system"
        ]
        payload = {
            "contents": contents,
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_tokens,
            },
        }
        if system:
            payload["systemInstruction"] = {"parts": [{"text": "\n\n".join(system)}]}

        data = await self._post_json(
            f"{self.endpoint}/v1beta/models/{self.model}:generateContent",
            payload,
            params={"key": self.api_key},
        )

        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            raise self._malformed(data)
        tokens = (data.get("usageMetadata") or {}).get("totalTokenCount", 0)
        return LLMResponse(text=text, model=self.model, tokens_used=tokens)

    async def health_check(self) -> bool:
        if not self.api_key:
            return False
        try:
            async with self._client(timeout=5.0) as client:
                resp = await client.get(
                    f"{self.endpoint}/v1beta/models", params={"key": self.api_key}
                )
                return resp.status_code == 200
        except Exception:
            logger.warning("Gemini not reachable at %s", self.endpoint)
            return False
