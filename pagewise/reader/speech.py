"""Speech synthesis hand-off.

The speech engine is the one exclusive platform resource of a session: the
`SpeechHandle` owns it and releases the previous utterance before acquiring a
new one, so at most one utterance is ever active.
"""

import itertools
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..core.errors import CapabilityError

logger = logging.getLogger(__name__)


@dataclass
class Utterance:
    id: int
    text: str
    rate: float = 0.9
    pitch: float = 1.0
    cancelled: bool = False


class SpeechEngine(ABC):
    """Platform speech synthesis capability."""

    @property
    @abstractmethod
    def available(self) -> bool:
        ...

    @abstractmethod
    def speak(self, utterance: Utterance) -> None:
        ...

    @abstractmethod
    def cancel(self) -> None:
        ...


class BrowserSpeechEngine(SpeechEngine):
    """Hands utterances to the browser client, which speaks whatever `active` holds.

    The client reports whether it has a speech synthesis API; until it says
    otherwise, speech is assumed to be available.
    """

    def __init__(self, supported: bool = True):
        self.supported = supported
        self.active: Utterance | None = None

    @property
    def available(self) -> bool:
        return self.supported

    def speak(self, utterance: Utterance) -> None:
        self.active = utterance

    def cancel(self) -> None:
        self.active = None


class SpeechHandle:
    """Owned handle over a SpeechEngine with explicit acquire/release."""

    def __init__(self, engine: SpeechEngine, rate: float = 0.9, pitch: float = 1.0):
        self.engine = engine
        self.rate = rate
        self.pitch = pitch
        self.current: Utterance | None = None
        self._ids = itertools.count(1)

    @property
    def speaking(self) -> bool:
        return self.current is not None

    def acquire(self, text: str) -> Utterance:
        if not self.engine.available:
            raise CapabilityError("speech", "Your browser doesn't support text-to-speech")
        self.release()
        utterance = Utterance(id=next(self._ids), text=text, rate=self.rate, pitch=self.pitch)
        self.engine.speak(utterance)
        self.current = utterance
        logger.debug("Speaking utterance %d (%d chars)", utterance.id, len(text))
        return utterance

    def release(self) -> None:
        if self.current is None:
            return
        self.engine.cancel()
        self.current.cancelled = True
        logger.debug("Cancelled utterance %d", self.current.id)
        self.current = None

    def finished(self, utterance_id: int) -> bool:
        """Mark the utterance as spoken to the end; ids of replaced utterances are ignored."""
        if self.current is None or self.current.id != utterance_id:
            return False
        self.engine.cancel()
        self.current = None
        return True
