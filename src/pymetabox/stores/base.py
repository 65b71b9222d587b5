from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class ContentStore(ABC):
    """Per content item key/value metadata storage."""

    suffixes: tuple[str, ...] = ()

    @abstractmethod
    def keys(self, content_id: Any) -> list[str]:
        """Return the metadata keys present for *content_id*."""

    @abstractmethod
    def get(self, content_id: Any, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def update(self, content_id: Any, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def delete(self, content_id: Any, key: str) -> None:
        pass
