from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

StatusListener = Callable[[bool], None]


class NetworkStatusPort(ABC):
    @abstractmethod
    async def start(self) -> None:
        """Begin monitoring connectivity."""
        raise NotImplementedError

    @abstractmethod
    async def stop(self) -> None:
        """Stop monitoring and drop every listener."""
        raise NotImplementedError

    @abstractmethod
    def is_online(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def add_listener(self, callback: StatusListener) -> Callable[[], None]:
        """Register a callback for online/offline changes. Returns a remover."""
        raise NotImplementedError
