"""Client for the public Google Books catalog (volumes search and lookup)."""

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from ..core.errors import ServiceError

logger = logging.getLogger(__name__)

UNKNOWN_AUTHOR = "Unknown Author"
NO_DESCRIPTION = "No description available"
PLACEHOLDER_IMAGE = "/placeholder.svg"


@dataclass
class Book:
    """A catalog search hit, as shown in the results list and handed to the reader."""
    id: str
    title: str
    authors: list[str] = field(default_factory=lambda: [UNKNOWN_AUTHOR])
    description: str = NO_DESCRIPTION
    image_url: str = PLACEHOLDER_IMAGE
    preview_link: str = ""

    @classmethod
    def from_volume(cls, item: dict) -> "Book":
        info = item.get("volumeInfo", {})
        return cls(
            id=item["id"],
            title=info.get("title", "Untitled"),
            authors=info.get("authors") or [UNKNOWN_AUTHOR],
            description=info.get("description") or NO_DESCRIPTION,
            image_url=info.get("imageLinks", {}).get("thumbnail") or PLACEHOLDER_IMAGE,
            preview_link=info.get("previewLink", ""),
        )


class CatalogClient:
    """Single-attempt lookups against the volumes API; no retries."""

    def __init__(
        self,
        endpoint: str = "https://www.googleapis.com/books/v1",
        api_key: str = "",
        max_results: int = 12,
        timeout: float = 20.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.api_key = api_key
        self.max_results = max_results
        self.timeout = timeout
        self.transport = transport

    async def search(self, query: str) -> list[Book]:
        params = {"q": query, "maxResults": self.max_results, "printType": "books"}
        data = await self._get("/volumes", params)
        books = []
        for item in data.get("items", []):
            try:
                books.append(Book.from_volume(item))
            except KeyError:
                logger.debug("Skipping catalog item without id")
        logger.info("Catalog search %r: %d results", query, len(books))
        return books

    async def get_volume(self, volume_id: str) -> dict[str, Any]:
        if not volume_id:
            raise ValueError("volume id is required")
        return await self._get(f"/volumes/{volume_id}", {})

    async def _get(self, path: str, params: dict) -> dict[str, Any]:
        if self.api_key:
            params = {**params, "key": self.api_key}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.get(f"{self.endpoint}{path}", params=params)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as e:
            raise ServiceError(
                f"Catalog request failed: {e.response.status_code}",
                service="catalog",
                failure_kind="upstream",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise ServiceError(
                f"Catalog unreachable: {e}", service="catalog", failure_kind="transport"
            ) from e
        except ValueError as e:
            raise ServiceError(
                "Catalog returned invalid JSON", service="catalog", failure_kind="malformed"
            ) from e
        if not isinstance(data, dict):
            raise ServiceError(
                "Catalog returned an unexpected body", service="catalog", failure_kind="malformed"
            )
        return data
