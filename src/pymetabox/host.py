"""Contract with the host platform.

The host owns screens, hooks and permissions.  Metaboxes only see the
narrow :class:`Host` protocol.  :class:`InProcessHost` is a small reference
implementation used by the command line and the tests.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Container, Mapping
from dataclasses import dataclass
from typing import IO, Any, Protocol

# callback(item, args, out, *, user=None)
RenderCallback = Callable[..., None]


@dataclass(frozen=True)
class ContentItem:
    id: Any
    type: str = "post"


@dataclass(frozen=True)
class Request:
    """The parts of an incoming request a save needs."""

    form: Mapping[str, Any] | None = None
    autosave: bool = False
    user: Any = None


@dataclass(frozen=True)
class DeclaredPanel:
    id: str
    title: str | None
    callback: RenderCallback
    screen: tuple[str, ...]
    context: str
    priority: str


class Host(Protocol):
    def add_meta_box(
        self,
        id: str,
        title: str | None,
        callback: RenderCallback,
        screen: tuple[str, ...],
        context: str,
        priority: str,
    ) -> None:
        ...

    def add_action(self, hook: str, callback: Callable[..., Any]) -> None:
        ...

    def user_can_edit(self, user: Any, content_id: Any) -> bool:
        ...


class InProcessHost:
    """Minimal host keeping hooks and declared panels in memory.

    ``editors`` restricts who may save; ``None`` allows everybody.
    """

    def __init__(self, *, editors: Container[Any] | None = None) -> None:
        self._actions: defaultdict[str, list[Callable[..., Any]]] = defaultdict(list)
        self.panels: dict[str, DeclaredPanel] = {}
        self.editors = editors

    def add_action(self, hook: str, callback: Callable[..., Any]) -> None:
        self._actions[hook].append(callback)

    def do_action(self, hook: str, *args: Any, **kwargs: Any) -> None:
        for callback in list(self._actions.get(hook, [])):
            callback(*args, **kwargs)

    def add_meta_box(
        self,
        id: str,
        title: str | None,
        callback: RenderCallback,
        screen: tuple[str, ...],
        context: str,
        priority: str,
    ) -> None:
        self.panels[id] = DeclaredPanel(id, title, callback, tuple(screen), context, priority)

    def user_can_edit(self, user: Any, content_id: Any) -> bool:
        if self.editors is None:
            return True
        return user in self.editors

    def render_panel(
        self, item: ContentItem, panel_id: str, out: IO[str], *, user: Any = None
    ) -> None:
        """Draw *panel_id* for *item* as seen by *user*."""
        panel = self.panels[panel_id]
        panel.callback(item, {"id": panel.id, "title": panel.title}, out, user=user)


__all__ = ["ContentItem", "DeclaredPanel", "Host", "InProcessHost", "Request"]
