import itertools
import logging
from dataclasses import asdict

from ..core.notices import NoticeBoard
from ..core.playback import PlaybackController
from ..core.prompts import ORIGINAL
from ..core.transitions import Effect, EffectKind, Mode, PlaybackFacts, ViewKey, reconcile
from ..core.translation import TranslationController
from .catalog import Book, CatalogClient
from .document import PAGE_SIZE, Document, fetch_document
from .speech import SpeechHandle

logger = logging.getLogger(__name__)


class ReadingSession:
    """Tracks the view state of a single reading session.

    Every user action is a transition of the (page, mode, language) key;
    `reconcile` turns the old and new key into effects and `_run` carries
    them out against the translation and playback controllers.
    """

    def __init__(
        self,
        session_id: str,
        catalog: CatalogClient,
        translator,
        illustrator,
        speech: SpeechHandle,
        notices: NoticeBoard | None = None,
        page_size: int = PAGE_SIZE,
        restart_delay_s: float = 0.1,
    ):
        self.session_id = session_id
        self.catalog = catalog
        self.page_size = page_size
        self.notices = notices or NoticeBoard()
        self.translation = TranslationController(translator, self.notices)
        self.playback = PlaybackController(speech, illustrator, self.notices, restart_delay_s)

        self.book: Book | None = None
        self.document: Document | None = None
        self.current_page = 0
        self.mode = Mode.TEXT
        self.language = ORIGINAL
        self.loading = False
        self._selection = itertools.count(1)
        self._latest_selection = 0

    @property
    def has_document(self) -> bool:
        return self.document is not None

    @property
    def total_pages(self) -> int:
        return self.document.total_pages if self.document else 0

    @property
    def key(self) -> ViewKey:
        return ViewKey(page=self.current_page, mode=self.mode, language=self.language)

    @property
    def busy(self) -> bool:
        """True while a translation or an image generation is in flight."""
        return self.translation.pending or self.playback.image_pending

    @property
    def display_text(self) -> str:
        return self.translation.displayed_text

    # ── Book selection ───────────────────────────────────────────────────

    async def select_book(self, book: Book) -> Document:
        """Reset every nested state, then fetch and page the book's content."""
        selection = next(self._selection)
        self._latest_selection = selection
        self._reset()
        self.book = book
        self.loading = True

        document = await fetch_document(self.catalog, book, self.page_size)

        if selection != self._latest_selection:
            logger.debug("Dropping content for superseded selection %s", book.id)
            return document
        self.loading = False
        self.document = document
        self.translation.reset(document.pages)
        if not document.preview_available:
            self.notices.post("Preview unavailable", "Showing the catalog summary only")
        logger.info("Session %s: %s (%d pages)", self.session_id, document.title, document.total_pages)
        await self._run(reconcile(None, self.key))
        return document

    def close_book(self) -> None:
        """Back to search: drop the document and stop anything playing."""
        self._latest_selection = next(self._selection)
        self._reset()

    def _reset(self) -> None:
        self.playback.reset()
        self.translation.reset(())
        self.notices.clear()
        self.book = None
        self.document = None
        self.loading = False
        self.current_page = 0
        self.mode = Mode.TEXT
        self.language = ORIGINAL

    # ── Transitions ──────────────────────────────────────────────────────

    async def go_to_page(self, index: int) -> bool:
        """Clamp to the document and move there; a no-op at the bounds or while busy."""
        if not self.document or self.busy:
            return False
        index = max(0, min(index, self.total_pages - 1))
        if index == self.current_page:
            return False
        await self._transition(page=index)
        return True

    async def next_page(self) -> bool:
        return await self.go_to_page(self.current_page + 1)

    async def previous_page(self) -> bool:
        return await self.go_to_page(self.current_page - 1)

    async def select_language(self, language: str) -> None:
        if not self.document or language == self.language:
            return
        await self._transition(language=language)

    async def set_mode(self, mode: Mode) -> None:
        if mode == self.mode:
            return
        await self._transition(mode=mode)

    def play(self) -> bool:
        if not self.document:
            return False
        return self.playback.play(self.display_text) is not None

    def pause(self) -> None:
        self.playback.pause()

    def speech_finished(self, utterance_id: int) -> None:
        self.playback.speech_finished(utterance_id)

    async def retry_image(self) -> str | None:
        """Manual retry of the illustration for the page in view."""
        if not self.document or self.mode != Mode.VIDEO:
            return None
        return await self._generate_image(self.key)

    async def _transition(self, **changes) -> None:
        prev = self.key
        self.current_page = changes.get("page", self.current_page)
        self.mode = changes.get("mode", self.mode)
        self.language = changes.get("language", self.language)
        self.playback.set_mode(self.mode)

        facts = PlaybackFacts(
            is_playing=self.playback.state.is_playing,
            has_image=self.playback.has_image_for(self.current_page),
            image_pending=self.playback.image_pending,
        )
        await self._run(reconcile(prev, self.key, facts))

    async def _run(self, effects: list[Effect]) -> None:
        for effect in effects:
            # Effects of a transition that a later one overtook are skipped.
            if not self.document or effect.key.page != self.current_page:
                logger.debug("Skipping stale effect %s", effect.kind.value)
                continue
            if effect.kind in (EffectKind.SHOW_ORIGINAL, EffectKind.TRANSLATE) and effect.key.language != self.language:
                logger.debug("Skipping stale effect %s", effect.kind.value)
                continue
            await self._apply(effect)

    async def _apply(self, effect: Effect) -> None:
        key = effect.key
        if effect.kind == EffectKind.STOP_SPEECH:
            self.playback.interrupt()
        elif effect.kind == EffectKind.SHOW_ORIGINAL:
            self.translation.show_original(key.page)
        elif effect.kind == EffectKind.TRANSLATE:
            await self.translation.ensure_translation(key.page, key.language, self._still_current)
        elif effect.kind == EffectKind.DISCARD_IMAGE:
            self.playback.discard_image()
        elif effect.kind == EffectKind.GENERATE_IMAGE:
            await self._generate_image(key)
        elif effect.kind == EffectKind.START_SPEECH:
            await self.playback.restart(self.display_text)

    async def _generate_image(self, key: ViewKey) -> str | None:
        return await self.playback.generate_image(
            key.page,
            self.document.get_page_text(key.page),
            lambda page: page == self.current_page and self.document is not None,
        )

    def _still_current(self, page: int, language: str) -> bool:
        return self.document is not None and page == self.current_page and language == self.language

    # ── Snapshot ─────────────────────────────────────────────────────────

    def snapshot(self) -> dict:
        playback = self.playback.state
        utterance = self.playback.speech.current
        translation = self.translation.state
        return {
            "session_id": self.session_id,
            "book": asdict(self.book) if self.book else None,
            "loading": self.loading,
            "preview_available": self.document.preview_available if self.document else None,
            "current_page": self.current_page,
            "total_pages": self.total_pages,
            "mode": self.mode.value,
            "language": self.language,
            "text": self.display_text,
            "busy": self.busy,
            "translation": {
                "page": translation.for_page,
                "language": translation.for_language,
                "status": translation.status.value,
            },
            "playback": {
                "is_playing": playback.is_playing,
                "utterance": asdict(utterance) if utterance else None,
                "image": playback.generated_image,
                "image_status": playback.image_status.value,
            },
        }
