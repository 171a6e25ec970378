from __future__ import annotations

import logging
from collections import deque

from admin_console.application.ports.notifier import NotifierPort


class LoggingNotifier(NotifierPort):
    def __init__(self) -> None:
        self._logger = logging.getLogger(__name__)
        self.sent: deque[tuple[str, str, str | None]] = deque(maxlen=50)

    def success(self, title: str, message: str | None = None) -> None:
        self.sent.append(("success", title, message))
        self._logger.info(title, extra={"reason": message})

    def error(self, title: str, message: str | None = None) -> None:
        self.sent.append(("error", title, message))
        self._logger.error(title, extra={"reason": message})
