from __future__ import annotations

import copy
from typing import Any

from .base import ContentStore


class InMemoryContentStore(ContentStore):
    """Store metadata in a process local dictionary."""

    def __init__(self) -> None:
        self._items: dict[str, dict[str, Any]] = {}

    def keys(self, content_id: Any) -> list[str]:
        return list(self._items.get(str(content_id), {}))

    def get(self, content_id: Any, key: str, default: Any = None) -> Any:
        item = self._items.get(str(content_id), {})
        if key not in item:
            return default
        return copy.deepcopy(item[key])

    def update(self, content_id: Any, key: str, value: Any) -> None:
        self._items.setdefault(str(content_id), {})[key] = copy.deepcopy(value)

    def delete(self, content_id: Any, key: str) -> None:
        item = self._items.get(str(content_id))
        if item is not None:
            item.pop(key, None)
