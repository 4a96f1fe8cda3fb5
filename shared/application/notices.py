"""
User Notices

The pathway through which failures reach the user as dismissible notices
(toasts), and the top-level error boundary that routes anything uncaught
into it.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Iterator, List

import structlog

logger = structlog.get_logger(__name__)


class NoticeLevel(Enum):
    SUCCESS = 'success'
    INFO = 'info'
    WARNING = 'warning'
    ERROR = 'error'


@dataclass(frozen=True)
class Notice:
    level: NoticeLevel
    message: str
    retryable: bool = False
    created_at: datetime = field(default_factory=datetime.now)


class NoticeSink:
    """
    Collects notices for the rendering layer

    Listeners registered with ``subscribe`` are called for every new
    notice; the renderer shows them and calls ``dismiss`` when closed.
    """

    def __init__(self):
        self._notices: List[Notice] = []
        self._listeners: List[Callable[[Notice], None]] = []

    def subscribe(self, listener: Callable[[Notice], None]) -> None:
        self._listeners.append(listener)

    def push(self, notice: Notice) -> Notice:
        self._notices.append(notice)
        for listener in list(self._listeners):
            try:
                listener(notice)
            except Exception:
                logger.exception("notice_listener_failed", message=notice.message)
        return notice

    def success(self, message: str) -> Notice:
        return self.push(Notice(NoticeLevel.SUCCESS, message))

    def info(self, message: str) -> Notice:
        return self.push(Notice(NoticeLevel.INFO, message))

    def warning(self, message: str) -> Notice:
        return self.push(Notice(NoticeLevel.WARNING, message))

    def error(self, message: str, retryable: bool = False) -> Notice:
        return self.push(Notice(NoticeLevel.ERROR, message, retryable=retryable))

    def dismiss(self, notice: Notice) -> None:
        if notice in self._notices:
            self._notices.remove(notice)

    def clear(self) -> None:
        self._notices.clear()

    @property
    def notices(self) -> List[Notice]:
        return list(self._notices)


def report_error(sink: NoticeSink, exc: BaseException) -> Notice:
    """
    Turn an exception into a user notice

    Exceptions meant for the user declare a ``notice_level`` ('warning' or
    'error') and may set ``retryable``; their message is shown as is.
    Anything else is logged with its traceback and shown as a generic,
    retryable error.
    """
    level = getattr(exc, 'notice_level', None)
    if level is not None:
        level = NoticeLevel(level)
        log = logger.info if level is NoticeLevel.WARNING else logger.warning
        log("user_facing_error", error_type=type(exc).__name__, error=str(exc))
        return sink.push(Notice(level, str(exc), retryable=bool(getattr(exc, 'retryable', False))))
    logger.error(
        "unexpected_error",
        error_type=type(exc).__name__,
        error=str(exc),
        exc_info=exc,
    )
    return sink.error("Something went wrong. Please try again.", retryable=True)


@contextmanager
def error_boundary(sink: NoticeSink, action: str = '') -> Iterator[None]:
    """
    Top-level boundary around a user action

    Any exception raised inside is logged and converted into a notice
    instead of reaching the caller.

    Usage:
        with error_boundary(sink, 'create booking'):
            store.create(draft)
    """
    try:
        yield
    except Exception as e:
        logger.debug("error_boundary_caught", action=action)
        report_error(sink, e)
