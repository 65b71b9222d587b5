from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import IO, Any

from . import widgets
from .config import Settings
from .errors import AuthenticityError, UnknownFieldError
from .form import Form, Reconciliation
from .panel import PanelSpec
from .security import NonceManager
from .stores import ContentStore
from .transients import TransientCache

logger = logging.getLogger("pymetabox")


class Metabox:
    """A form bound to a content editing screen.

    Rendering and saving happen in separate requests.  Validation errors
    from a save are parked in the transient cache and shown once by the
    render that follows the host's redirect.
    """

    def __init__(
        self,
        spec: PanelSpec,
        *,
        store: ContentStore,
        transients: TransientCache,
        nonces: NonceManager,
        settings: Settings,
    ) -> None:
        self.spec = spec
        self.form = Form(spec.fields)
        self.store = store
        self.transients = transients
        self.nonces = nonces
        self.settings = settings

    @property
    def id(self) -> str:
        return self.spec.id

    @property
    def title(self) -> str | None:
        return self.spec.title

    @property
    def nonce_name(self) -> str:
        return f"{self.id}_nonce"

    def _error_key(self, content_id: Any) -> str:
        return self.settings.error_key(content_id, self.id)

    # ------------------------------------------------------------------
    # render
    # ------------------------------------------------------------------
    def render(self, content_id: Any, out: IO[str], *, user: Any = None) -> None:
        """Write the panel markup for *content_id* to *out*."""
        self.print_errors(content_id, out)

        instance, _ = self.form.reconcile({}, self.stored_instance(content_id))
        token = self.nonces.create(self.settings.nonce_action, user)

        out.write(f'<div class="pymetabox" id="pymetabox-{self.id}">')
        out.write(widgets.nonce_input(self.nonce_name, token))
        for spec in self.form.fields:
            out.write(spec.render(instance.get(spec.name)))
        out.write("</div>")

    def print_errors(self, content_id: Any, out: IO[str]) -> None:
        """Write the errors left by the previous save, then forget them."""
        key = self._error_key(content_id)
        errors = self.transients.get(key)
        if errors:
            for name, message in errors.items():
                try:
                    title = self.form.get_component_by_name(name).title
                except UnknownFieldError:
                    # the field was removed since the error was cached
                    title = name
                out.write(widgets.error_notice(title, message))
        self.transients.delete(key)

    # ------------------------------------------------------------------
    # save
    # ------------------------------------------------------------------
    def save(
        self,
        content_id: Any,
        form_data: Mapping[str, Any] | None,
        *,
        user: Any = None,
    ) -> bool:
        """Persist the posted values for *content_id*.

        Returns ``True`` when values were written.  A missing or invalid
        token, or a payload without any of this panel's fields, writes
        nothing.
        """
        try:
            self.check_nonce(form_data, user)
        except AuthenticityError as exc:
            logger.debug("skipping save of %s for %s: %s", self.id, content_id, exc)
            return False

        submitted = self.submitted_instance(form_data)
        if not submitted:
            logger.debug("nothing submitted for %s on %s", self.id, content_id)
            return False

        result = self.update(content_id, submitted)
        if result.errors:
            logger.info(
                "saved %s for %s with %d invalid field(s)",
                self.id,
                content_id,
                len(result.errors),
            )
        else:
            logger.info("saved %s for %s", self.id, content_id)
        return True

    def check_nonce(self, form_data: Mapping[str, Any] | None, user: Any = None) -> None:
        token = None if form_data is None else form_data.get(self.nonce_name)
        if token is None:
            raise AuthenticityError(f"missing {self.nonce_name}")
        if not self.nonces.verify(token, self.settings.nonce_action, user):
            raise AuthenticityError(f"invalid {self.nonce_name}")

    def update(self, content_id: Any, submitted: Mapping[str, Any]) -> Reconciliation:
        """Reconcile *submitted* with storage, write the result and cache errors."""
        result = self.form.reconcile(submitted, self.stored_instance(content_id))
        if submitted:
            for name, value in result.instance.items():
                self.store.update(content_id, name, value)
            self.transients.set(
                self._error_key(content_id), result.errors, self.settings.error_ttl
            )
        return result

    # ------------------------------------------------------------------
    # instances
    # ------------------------------------------------------------------
    def stored_instance(self, content_id: Any) -> dict[str, Any]:
        present = set(self.store.keys(content_id))
        return {
            c.name: self.store.get(content_id, c.name)
            for c in self.form.get_value_components()
            if c.name in present
        }

    def submitted_instance(self, form_data: Mapping[str, Any] | None) -> dict[str, Any]:
        if form_data is None:
            return {}
        return {
            c.name: form_data[c.name]
            for c in self.form.get_value_components()
            if c.name in form_data
        }

    def get_value(self, content_id: Any, name: str) -> Any:
        spec = self.form.get_component_by_name(name)
        if name in self.store.keys(content_id):
            return self.store.get(content_id, name)
        return spec.initial()


__all__ = ["Metabox"]
