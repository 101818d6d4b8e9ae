"""Port for user-visible notices emitted by the engine."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Protocol, runtime_checkable


class NoticeLevel(StrEnum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


_LOG_LEVELS = {
    NoticeLevel.INFO: logging.INFO,
    NoticeLevel.SUCCESS: logging.INFO,
    NoticeLevel.WARNING: logging.WARNING,
    NoticeLevel.ERROR: logging.ERROR,
}


@runtime_checkable
class Notifier(Protocol):
    def notify(self, message: str, *, level: NoticeLevel = NoticeLevel.INFO) -> None: ...


class LoggingNotifier:
    """Notifier that forwards every notice to a logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("provisync.notices")

    def notify(self, message: str, *, level: NoticeLevel = NoticeLevel.INFO) -> None:
        self._logger.log(_LOG_LEVELS[level], message)


__all__ = ["LoggingNotifier", "NoticeLevel", "Notifier"]
