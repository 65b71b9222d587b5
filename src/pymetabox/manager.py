"""Process wide registry of metaboxes.

The :class:`Manager` holds every registered :class:`~pymetabox.metabox.Metabox`
and translates host lifecycle events (panel declaration, save, footer) into
calls on them.  :func:`get_manager` returns the lazily created process wide
instance; :func:`reset_manager` drops it so tests can start fresh.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator, Mapping
from importlib import resources
from typing import IO, Any

from . import widgets
from .config import Settings, load_settings, resolve_secret
from .errors import DuplicateIdError, PermissionDeniedError, UnknownPanelError
from .host import ContentItem, Host, Request
from .metabox import Metabox
from .panel import PanelSpec
from .security import HmacNonceManager, NonceManager
from .stores import ContentStore, open_content_store
from .transients import FileTransientCache, InMemoryTransientCache, TransientCache

logger = logging.getLogger("pymetabox")


def _stylesheet() -> str:
    return resources.files("pymetabox").joinpath("metabox.css").read_text(encoding="utf-8")


class Manager:
    def __init__(
        self,
        *,
        settings: Settings | None = None,
        store: ContentStore | None = None,
        transients: TransientCache | None = None,
        nonces: NonceManager | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.store = store if store is not None else open_content_store(self.settings.store_path)
        if transients is None:
            if self.settings.transient_dir is not None:
                transients = FileTransientCache(self.settings.transient_dir)
            else:
                transients = InMemoryTransientCache()
        self.transients = transients
        self.nonces = nonces or HmacNonceManager(
            resolve_secret(self.settings), lifetime=self.settings.nonce_lifetime
        )
        self.host: Host | None = None
        self._metaboxes: dict[str, Metabox] = {}

    # ------------------------------------------------------------------
    # registry
    # ------------------------------------------------------------------
    def register(self, panel_id: str, args: Mapping[str, Any] | PanelSpec) -> Metabox:
        if panel_id in self._metaboxes:
            raise DuplicateIdError(f"A metabox with id {panel_id!r} has already been registered.")
        if isinstance(args, PanelSpec):
            if args.id != panel_id:
                raise ValueError(f"panel spec id {args.id!r} does not match {panel_id!r}")
            spec = args
        else:
            spec = PanelSpec.from_args(panel_id, args)
        metabox = Metabox(
            spec,
            store=self.store,
            transients=self.transients,
            nonces=self.nonces,
            settings=self.settings,
        )
        self._metaboxes[panel_id] = metabox
        logger.debug("registered metabox %s", panel_id)
        return metabox

    def get(self, panel_id: str) -> Metabox:
        try:
            return self._metaboxes[panel_id]
        except KeyError as exc:
            raise UnknownPanelError(panel_id) from exc

    def __contains__(self, panel_id: object) -> bool:
        return panel_id in self._metaboxes

    def __iter__(self) -> Iterator[Metabox]:
        return iter(list(self._metaboxes.values()))

    def __len__(self) -> int:
        return len(self._metaboxes)

    # ------------------------------------------------------------------
    # host lifecycle
    # ------------------------------------------------------------------
    def attach(self, host: Host) -> None:
        """Subscribe to the host's lifecycle actions."""
        self.host = host
        host.add_action("add_meta_boxes", self.add_meta_boxes)
        host.add_action("save_post", self.save_meta_boxes)
        host.add_action("admin_footer", self.print_style)

    def add_meta_boxes(self) -> None:
        host = self._require_host()
        for metabox in self:
            spec = metabox.spec
            host.add_meta_box(
                spec.id,
                spec.title,
                self.render,
                spec.screen,
                spec.context,
                spec.priority,
            )

    def render(self, item: ContentItem, args: Mapping[str, Any], out: IO[str], *, user: Any = None) -> None:
        self.get(args["id"]).render(item.id, out, user=user)

    def save_meta_boxes(self, content_id: Any, request: Request) -> list[str]:
        """Save every metabox for *content_id*; return the ids that persisted."""
        if request.autosave:
            logger.debug("autosave of %s, metaboxes skipped", content_id)
            return []
        try:
            self._check_permission(content_id, request)
        except PermissionDeniedError as exc:
            logger.warning("not saving metaboxes for %s: %s", content_id, exc)
            return []

        saved: list[str] = []
        for metabox in self:
            try:
                if metabox.save(content_id, request.form, user=request.user):
                    saved.append(metabox.id)
            except Exception:
                logger.exception("saving metabox %s for %s failed", metabox.id, content_id)
        return saved

    def print_style(self, screen_id: str | None, out: IO[str]) -> None:
        for metabox in self:
            if metabox.spec.targets(screen_id):
                out.write(widgets.style_block(_stylesheet()))
                return

    def _check_permission(self, content_id: Any, request: Request) -> None:
        host = self._require_host()
        if not host.user_can_edit(request.user, content_id):
            raise PermissionDeniedError(f"user {request.user!r} may not edit {content_id!r}")

    def _require_host(self) -> Host:
        if self.host is None:
            raise RuntimeError("no host attached; call Manager.attach(host) first")
        return self.host

    # ------------------------------------------------------------------
    # values
    # ------------------------------------------------------------------
    def get_meta_box_value(self, panel_id: str, name: str, content_id: Any) -> Any:
        """Return the stored value of a field, or its default if never saved."""
        return self.get(panel_id).get_value(content_id, name)


# ---------------------------------------------------------------------------
# process wide instance
# ---------------------------------------------------------------------------

_lock = threading.Lock()
_instance: Manager | None = None


def get_manager() -> Manager:
    global _instance
    if _instance is None:
        with _lock:
            if _instance is None:
                _instance = Manager(settings=load_settings())
    return _instance


def reset_manager(manager: Manager | None = None) -> None:
    """Drop the process wide manager, optionally installing *manager*."""
    global _instance
    with _lock:
        _instance = manager


__all__ = ["Manager", "get_manager", "reset_manager"]
