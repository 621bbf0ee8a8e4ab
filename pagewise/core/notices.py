import logging
import time
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class Notice:
    """A transient, dismissible message for the reader (the UI shows it as a toast)."""
    title: str
    description: str = ""
    variant: str = "default"   # "default" or "destructive"
    timestamp: float = field(default_factory=time.time)


class NoticeBoard:
    """Collects notices until the client drains them."""

    def __init__(self, max_notices: int = 20):
        self._notices: list[Notice] = []
        self._once_keys: set[str] = set()
        self._max = max_notices

    def post(self, title: str, description: str = "", variant: str = "default") -> Notice:
        notice = Notice(title=title, description=description, variant=variant)
        self._notices.append(notice)
        if len(self._notices) > self._max:
            self._notices = self._notices[-self._max:]
        logger.debug("Notice: %s (%s)", title, variant)
        return notice

    def post_once(self, key: str, title: str, description: str = "", variant: str = "default") -> Notice | None:
        """Post a notice only the first time `key` is seen (capability notices)."""
        if key in self._once_keys:
            return None
        self._once_keys.add(key)
        return self.post(title, description, variant)

    def peek(self) -> list[Notice]:
        return list(self._notices)

    def drain(self) -> list[Notice]:
        notices, self._notices = self._notices, []
        return notices

    def clear(self) -> None:
        self._notices.clear()
