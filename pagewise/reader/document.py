import logging
import re
from dataclasses import dataclass

from ..core.errors import ServiceError
from .catalog import Book, CatalogClient

logger = logging.getLogger(__name__)

PAGE_SIZE = 2000
PREVIEW_NOTE = (
    "Note: Due to copyright restrictions, Google Books API provides limited content. "
    "Full books are not available through the API."
)
PREVIEW_UNAVAILABLE = "Content preview is not available."

_BOLD_TAG = re.compile(r"</?b>")


@dataclass(frozen=True)
class Document:
    """Composed book text and its fixed-width pages; immutable once built."""
    id: str
    title: str
    authors: tuple[str, ...]
    raw_text: str
    pages: tuple[str, ...]
    preview_available: bool = True

    @property
    def total_pages(self) -> int:
        return len(self.pages)

    def get_page_text(self, index: int) -> str:
        """Get text for a specific page (0-indexed)."""
        if 0 <= index < len(self.pages):
            return self.pages[index]
        return ""


def split_pages(text: str, page_size: int = PAGE_SIZE) -> list[str]:
    """Fixed-width split; joining the pages gives back the text, and there is always one page."""
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    if not text:
        return [""]
    return [text[i:i + page_size] for i in range(0, len(text), page_size)]


def compose_text(book: Book, volume: dict) -> str:
    info = volume["volumeInfo"]
    search_info = volume.get("searchInfo") or {}

    title = info.get("title") or book.title
    authors = info.get("authors") or book.authors
    text = f"# {title}\n\n**by {', '.join(authors)}**\n\n"

    if info.get("description"):
        text += f"---\n\n## Overview\n\n{info['description']}\n\n"

    details = []
    if info.get("publisher"):
        details.append(f"**Publisher:** {info['publisher']}")
    if info.get("publishedDate"):
        details.append(f"**Published:** {info['publishedDate']}")
    if info.get("pageCount"):
        details.append(f"**Pages:** {info['pageCount']}")
    if info.get("categories"):
        details.append(f"**Categories:** {', '.join(info['categories'])}")
    if details:
        text += "\n".join(details) + "\n\n"

    snippet = search_info.get("textSnippet")
    if snippet:
        text += f"---\n\n## Content Preview\n\n{PREVIEW_NOTE}\n\n"
        text += _BOLD_TAG.sub("**", snippet) + "\n\n"

    return text


def fallback_text(book: Book) -> str:
    return (
        f"# {book.title}\n\nby {', '.join(book.authors)}\n\n"
        f"{book.description}\n\n{PREVIEW_UNAVAILABLE}"
    )


def build_document(book: Book, text: str, page_size: int = PAGE_SIZE) -> Document:
    return Document(
        id=book.id,
        title=book.title,
        authors=tuple(book.authors),
        raw_text=text,
        pages=tuple(split_pages(text, page_size)),
    )


async def fetch_document(catalog: CatalogClient, book: Book, page_size: int = PAGE_SIZE) -> Document:
    """Fetch a volume and page it; any failure yields the single-page fallback instead of raising."""
    try:
        volume = await catalog.get_volume(book.id)
        text = compose_text(book, volume)
    except (ServiceError, ValueError, KeyError, TypeError, AttributeError) as e:
        logger.error("Error fetching book content for %s: %s", book.id, e)
        text = fallback_text(book)
        return Document(
            id=book.id,
            title=book.title,
            authors=tuple(book.authors),
            raw_text=text,
            pages=(text,),
            preview_available=False,
        )

    doc = build_document(book, text, page_size)
    logger.info("Composed %s: %d chars, %d pages", book.id, len(text), doc.total_pages)
    return doc
