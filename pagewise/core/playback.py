import asyncio
import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .errors import CapabilityError
from .notices import NoticeBoard
from .transitions import Mode
from ..reader.speech import SpeechHandle, Utterance

logger = logging.getLogger(__name__)


class ImageStatus(str, Enum):
    ABSENT = "absent"
    PENDING = "pending"
    READY = "ready"


@dataclass
class PlaybackState:
    mode: Mode = Mode.TEXT
    is_playing: bool = False
    generated_image: str | None = None
    image_status: ImageStatus = ImageStatus.ABSENT
    image_page: int | None = None


class PlaybackController:
    """Text / audio / video mode selector and the speech and illustration it drives."""

    def __init__(
        self,
        speech: SpeechHandle,
        illustrator,
        notices: NoticeBoard,
        restart_delay_s: float = 0.1,
    ):
        self.speech = speech
        self.illustrator = illustrator
        self.notices = notices
        self.restart_delay_s = restart_delay_s
        self.state = PlaybackState()
        self._seq = itertools.count(1)
        self._latest_image = 0
        self._resume = False

    @property
    def image_pending(self) -> bool:
        return self.state.image_status == ImageStatus.PENDING

    def reset(self) -> None:
        self.pause()
        self._latest_image = next(self._seq)
        self.state = PlaybackState()

    def set_mode(self, mode: Mode) -> None:
        if mode != self.state.mode:
            self.pause()
        self.state.mode = mode

    # ── Speech ───────────────────────────────────────────────────────────

    def play(self, text: str) -> Utterance | None:
        if self.state.mode == Mode.TEXT:
            return None
        try:
            utterance = self.speech.acquire(text)
        except CapabilityError as e:
            logger.warning("Speech unavailable: %s", e)
            self.notices.post_once("speech-unsupported", "Audio not supported", str(e), "destructive")
            self.state.is_playing = False
            return None
        self.state.is_playing = True
        return utterance

    def pause(self) -> None:
        self._resume = False
        self.stop()

    def stop(self) -> None:
        self.speech.release()
        self.state.is_playing = False

    def interrupt(self) -> None:
        """Stop for a page turn; a later `restart` resumes unless paused in between."""
        self._resume = self._resume or self.state.is_playing
        self.stop()

    async def restart(self, text: str) -> Utterance | None:
        self.interrupt()
        if self.restart_delay_s > 0:
            await asyncio.sleep(self.restart_delay_s)
        if not self._resume:
            logger.debug("Restart cancelled by pause or mode change")
            return None
        self._resume = False
        return self.play(text)

    def speech_finished(self, utterance_id: int) -> None:
        if self.speech.finished(utterance_id):
            self.state.is_playing = False

    # ── Illustration ─────────────────────────────────────────────────────

    def has_image_for(self, page_index: int) -> bool:
        return self.state.image_page == page_index and self.state.image_status != ImageStatus.ABSENT

    def discard_image(self) -> None:
        self._latest_image = next(self._seq)
        self.state.generated_image = None
        self.state.image_status = ImageStatus.ABSENT
        self.state.image_page = None

    async def generate_image(
        self,
        page_index: int,
        page_text: str,
        still_current: Callable[[int], bool] | None = None,
    ) -> str | None:
        """Prompt, then image, for one page; a result for a page no longer in view is dropped."""
        if self.image_pending and self.state.image_page == page_index:
            return None

        seq = next(self._seq)
        self._latest_image = seq
        self.state.generated_image = None
        self.state.image_status = ImageStatus.PENDING
        self.state.image_page = page_index

        def live() -> bool:
            return seq == self._latest_image and (still_current is None or still_current(page_index))

        try:
            prompt = await self.illustrator.describe(page_text, page_index + 1)
            image_url = await self.illustrator.render(prompt)
        except Exception as e:
            if not live():
                logger.debug("Dropping stale image failure for page %d", page_index)
                return None
            logger.error("Error generating image for page %d: %s", page_index, e)
            self.discard_image()
            self.notices.post("Video generation failed", "Please try again later", "destructive")
            return None

        if not live():
            logger.debug("Dropping stale image for page %d", page_index)
            return None

        self.state.generated_image = image_url
        self.state.image_status = ImageStatus.READY
        self.notices.post("Video mode ready", "Image generated successfully")
        return image_url
