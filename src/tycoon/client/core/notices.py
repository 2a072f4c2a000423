"""
Action results and the user-facing notification sink.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from tycoon.shared.enums import NoticeLevel

logger = logging.getLogger(__name__)


@dataclass
class ActionResult:
    """Result of a user or AI intent."""

    success: bool
    message: str = ""
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: str = "", **data) -> "ActionResult":
        return cls(True, message, data)

    @classmethod
    def fail(cls, message: str = "", **data) -> "ActionResult":
        return cls(False, message, data)

    def __bool__(self) -> bool:
        return self.success


@dataclass(frozen=True)
class Notice:
    message: str
    level: NoticeLevel = NoticeLevel.DEFAULT


NotificationSink = Callable[[Notice], None]


def log_sink(notice: Notice) -> None:
    """Default sink: notices go to the log."""
    if notice.level == NoticeLevel.ERROR:
        logger.warning(notice.message)
    else:
        logger.info(notice.message)


class Notifier:
    """Fans notices out to the registered sinks and keeps the most recent one."""

    def __init__(self, sink: Optional[NotificationSink] = None):
        self._sinks: List[NotificationSink] = [sink or log_sink]
        self.last: Optional[Notice] = None

    def add_sink(self, sink: NotificationSink) -> None:
        self._sinks.append(sink)

    def __call__(self, message: str, level: NoticeLevel = NoticeLevel.DEFAULT) -> None:
        notice = Notice(message, level)
        self.last = notice
        for sink in list(self._sinks):
            try:
                sink(notice)
            except Exception as e:
                logger.error(f"Notification sink failed: {e}", exc_info=True)

    def success(self, message: str) -> None:
        self(message, NoticeLevel.SUCCESS)

    def error(self, message: str) -> None:
        self(message, NoticeLevel.ERROR)
