from __future__ import annotations

from abc import ABC, abstractmethod


class NotifierPort(ABC):
    @abstractmethod
    def success(self, title: str, message: str | None = None) -> None:
        raise NotImplementedError

    @abstractmethod
    def error(self, title: str, message: str | None = None) -> None:
        raise NotImplementedError
