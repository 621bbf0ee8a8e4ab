import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence

from .notices import NoticeBoard
from .prompts import ORIGINAL, language_name

logger = logging.getLogger(__name__)


class TranslationStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


@dataclass
class TranslationState:
    for_page: int = 0
    for_language: str = ORIGINAL
    text: str = ""
    status: TranslationStatus = TranslationStatus.IDLE


@dataclass(frozen=True)
class TranslationTicket:
    seq: int
    page: int
    language: str


class TranslationController:
    """Per-page translation state for the page in view.

    Only the most recently issued request may change what is displayed: each
    request gets a ticket, and a result is applied only while its ticket is the
    latest one and `still_current(page, language)` holds.
    """

    def __init__(self, translator, notices: NoticeBoard):
        self.translator = translator
        self.notices = notices
        self.state = TranslationState()
        self.displayed_text = ""
        self._pages: Sequence[str] = ()
        self._seq = itertools.count(1)
        self._latest = 0

    @property
    def pending(self) -> bool:
        return self.state.status == TranslationStatus.PENDING

    def reset(self, pages: Sequence[str]) -> None:
        self._pages = pages
        self._latest = next(self._seq)
        self.state = TranslationState()
        self.displayed_text = pages[0] if pages else ""

    def page_text(self, index: int) -> str:
        if 0 <= index < len(self._pages):
            return self._pages[index]
        return ""

    def show_original(self, page_index: int) -> TranslationState:
        """Display the untranslated page; any request still in flight becomes stale."""
        self._latest = next(self._seq)
        text = self.page_text(page_index)
        self.state = TranslationState(
            for_page=page_index, for_language=ORIGINAL, text=text, status=TranslationStatus.READY
        )
        self.displayed_text = text
        return self.state

    async def ensure_translation(
        self,
        page_index: int,
        language: str,
        still_current: Callable[[int, str], bool] | None = None,
    ) -> TranslationState:
        if language == ORIGINAL:
            return self.show_original(page_index)

        ticket = TranslationTicket(seq=next(self._seq), page=page_index, language=language)
        self._latest = ticket.seq
        self.state = TranslationState(
            for_page=page_index, for_language=language, status=TranslationStatus.PENDING
        )

        try:
            translated = await self.translator.translate(self.page_text(page_index), language)
        except Exception as e:
            if not self._is_live(ticket, still_current):
                logger.debug("Dropping stale translation failure for %s", ticket)
                return self.state
            logger.error("Translation of page %d to %s failed: %s", page_index, language, e)
            self.state.status = TranslationStatus.FAILED
            self.notices.post("Translation failed", "Please try again later", "destructive")
            return self.state

        if not self._is_live(ticket, still_current):
            logger.debug("Dropping stale translation for %s", ticket)
            return self.state

        self.state = TranslationState(
            for_page=page_index, for_language=language, text=translated, status=TranslationStatus.READY
        )
        self.displayed_text = translated
        self.notices.post(
            "Translation complete", f"Page translated to {language_name(language)}"
        )
        return self.state

    def _is_live(self, ticket: TranslationTicket, still_current) -> bool:
        if ticket.seq != self._latest:
            return False
        return still_current is None or still_current(ticket.page, ticket.language)
