from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field as dataclass_field
from typing import Any

from .fields import FieldSpec

CONTEXTS = ("normal", "side", "advanced")
PRIORITIES = ("high", "core", "default", "low")

DEFAULT_ARGS: dict[str, Any] = {
    "title": None,
    "screen": None,
    "context": "advanced",
    "priority": "default",
    "fields": (),
}


@dataclass(frozen=True)
class PanelSpec:
    """Configuration of one registered metabox."""

    id: str
    title: str | None = None
    screen: str | Iterable[str] | None = None
    context: str = "advanced"
    priority: str = "default"
    fields: Iterable[FieldSpec | Mapping[str, Any]] = dataclass_field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("panel id must not be empty")
        if self.context not in CONTEXTS:
            raise ValueError(f"invalid context: {self.context!r}")
        if self.priority not in PRIORITIES:
            raise ValueError(f"invalid priority: {self.priority!r}")
        screen = self.screen
        if screen is None:
            screens: tuple[str, ...] = ()
        elif isinstance(screen, str):
            screens = (screen,)
        else:
            screens = tuple(screen)
        object.__setattr__(self, "screen", screens)
        object.__setattr__(
            self,
            "fields",
            tuple(
                f if isinstance(f, FieldSpec) else FieldSpec.from_mapping(f)
                for f in self.fields
            ),
        )

    @classmethod
    def from_args(cls, panel_id: str, args: Mapping[str, Any]) -> PanelSpec:
        """Merge registration *args* onto :data:`DEFAULT_ARGS`."""
        merged = {**DEFAULT_ARGS, **args}
        merged.pop("id", None)
        unknown = set(merged) - set(DEFAULT_ARGS)
        if unknown:
            raise ValueError(f"unknown panel arguments: {sorted(unknown)}")
        return cls(id=panel_id, **merged)

    def targets(self, screen_id: str | None) -> bool:
        return screen_id is not None and screen_id in self.screen


__all__ = ["CONTEXTS", "DEFAULT_ARGS", "PRIORITIES", "PanelSpec"]
