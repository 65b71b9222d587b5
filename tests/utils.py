from __future__ import annotations

import io
import re
from typing import Any

from pymetabox.config import Settings
from pymetabox.host import ContentItem, InProcessHost
from pymetabox.manager import Manager
from pymetabox.stores import InMemoryContentStore
from pymetabox.transients import InMemoryTransientCache


class FakeClock:
    """Manually advanced clock for TTL and nonce tests."""

    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class SpyStore(InMemoryContentStore):
    """In-memory store that records every write."""

    def __init__(self) -> None:
        super().__init__()
        self.updates: list[tuple[Any, str, Any]] = []

    def update(self, content_id, key, value):
        self.updates.append((content_id, key, value))
        super().update(content_id, key, value)


def make_manager(*, editors=None, clock: FakeClock | None = None, store=None):
    clock = clock or FakeClock()
    manager = Manager(
        settings=Settings(secret_key="test-secret"),
        store=store if store is not None else SpyStore(),
        transients=InMemoryTransientCache(clock=clock),
    )
    host = InProcessHost(editors=editors)
    manager.attach(host)
    return manager, host


def signed(manager: Manager, panel_id: str, data: dict, user=None) -> dict:
    token = manager.nonces.create(manager.settings.nonce_action, user)
    return {f"{panel_id}_nonce": token, **data}


def render(manager: Manager, panel_id: str, content_id, user=None) -> str:
    out = io.StringIO()
    manager.get(panel_id).render(content_id, out, user=user)
    return out.getvalue()


def host_render(host: InProcessHost, panel_id: str, content_id, user=None) -> str:
    out = io.StringIO()
    host.render_panel(ContentItem(content_id), panel_id, out, user=user)
    return out.getvalue()


def nonce_from(html: str, panel_id: str) -> str:
    match = re.search(rf'name="{panel_id}_nonce" value="([^"]*)"', html)
    assert match is not None, f"no {panel_id}_nonce in markup"
    return match.group(1)
