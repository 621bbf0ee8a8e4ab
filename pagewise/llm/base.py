import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx

from ..core.errors import MissingConfigError, ServiceError

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    text: str
    model: str
    tokens_used: int = 0


class LLMProvider(ABC):
    """Abstract interface for language model providers."""

    name = "llm"
    requires_api_key = True

    def __init__(
        self,
        model: str,
        endpoint: str,
        temperature: float = 0.7,
        max_tokens: int = 1024,
        api_key: str = "",
        api_key_setting: str = "LLM_API_KEY",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.model = model
        self.endpoint = endpoint.rstrip("/")
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.api_key = api_key.strip() if api_key else ""
        self.api_key_setting = api_key_setting
        self.transport = transport

    async def generate(self, prompt: str, context: str = "") -> LLMResponse:
        """Generate a response given a prompt and optional system context."""
        messages = []
        if context:
            messages.append({"role": "system", "content": context})
        messages.append({"role": "user", "content": prompt})
        return await self.chat(messages)

    @abstractmethod
    async def chat(self, messages: list[dict]) -> LLMResponse:
        """Run a chat completion over role/content messages."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the provider is reachable."""
        ...

    def _client(self, timeout: float = 120.0) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self.transport)

    def _require_api_key(self) -> None:
        if self.requires_api_key and not self.api_key:
            raise MissingConfigError(self.api_key_setting)

    async def _post_json(
        self,
        url: str,
        payload: dict,
        headers: dict | None = None,
        params: dict | None = None,
    ) -> dict[str, Any]:
        """POST a JSON payload and map httpx failures onto ServiceError."""
        try:
            async with self._client() as client:
                resp = await client.post(url, json=payload, headers=headers, params=params)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error("%s returned %d: %s", self.name, status, e.response.text[:200])
            raise ServiceError(
                f"{self.name} request failed: {status}",
                service=self.name,
                failure_kind="upstream",
                status_code=status,
            ) from e
        except httpx.HTTPError as e:
            logger.error("%s unreachable at %s: %s", self.name, self.endpoint, e)
            raise ServiceError(
                f"{self.name} request failed: {e}",
                service=self.name,
                failure_kind="transport",
            ) from e
        except ValueError as e:
            raise ServiceError(
                f"{self.name} returned invalid JSON",
                service=self.name,
                failure_kind="malformed",
            ) from e
        if not isinstance(data, dict):
            raise self._malformed(data)
        return data

    def _malformed(self, data: Any) -> ServiceError:
        logger.error("%s returned an unexpected body: %.200s", self.name, data)
        return ServiceError(
            f"{self.name} returned an unexpected response",
            service=self.name,
            failure_kind="malformed",
        )
