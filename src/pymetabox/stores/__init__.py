"""Content store registry and factory."""
from __future__ import annotations

from pathlib import Path

from .base import ContentStore

_REGISTRY: dict[str, type[ContentStore]] = {}


def register_store(store: type[ContentStore]) -> type[ContentStore]:
    """Register a store class and return it for decorator use."""
    for suf in store.suffixes:
        _REGISTRY[suf] = store
    return store


def open_content_store(path: Path | str | None) -> ContentStore:
    """Return a store for *path*, or an in-memory store when it is ``None``."""
    if path is None:
        return InMemoryContentStore()
    path = Path(path)
    store_cls = _REGISTRY.get(path.suffix.lower())
    if store_cls is None:
        raise ValueError(f"No content store for {path.suffix!r}")
    return store_cls(path)


# register default stores
from .json_store import JsonContentStore  # noqa: E402
from .memory import InMemoryContentStore  # noqa: E402

__all__ = [
    "ContentStore",
    "InMemoryContentStore",
    "JsonContentStore",
    "open_content_store",
    "register_store",
]
