"""Field specifications and the per-kind value contract.

A :class:`FieldSpec` describes one input of a metabox.  The behaviour of a
field is driven by its ``kind`` which is looked up in :data:`TYPE_REGISTRY`.
Each :class:`FieldType` couples a value adapter (parsing and validating
posted data) with the widget used to draw it.  Kinds without an adapter are
purely presentational and never read from or written to storage.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field as dataclass_field
from types import MappingProxyType
from typing import Any, Protocol

from . import widgets
from .errors import ValidationError
from .validators import Rule, resolve_rule

####################
##### ADAPTERS #####
####################


class ValueAdapter(Protocol):
    """Adapter for the posted value of a field kind.

    ``parse`` coerces raw posted data into the value that gets stored and
    ``validate`` checks kind specific constraints.  Both raise
    :class:`TypeError` or :class:`ValueError` on bad input.
    """

    def parse(self, raw: Any) -> Any:
        ...

    def validate(self, value: Any, spec: FieldSpec) -> None:
        ...


class TextAdapter:
    """Adapter for single and multi line text."""

    def parse(self, raw: Any) -> str:
        if raw is None:
            return ""
        if isinstance(raw, (list, tuple, dict)):
            raise TypeError("expected text")
        return str(raw)

    def validate(self, value: Any, spec: FieldSpec) -> None:
        if not isinstance(value, str):
            raise TypeError("expected text")


class NumberAdapter:
    """Adapter for integer and floating point numbers."""

    def parse(self, raw: Any) -> int | float | None:
        if raw is None or (isinstance(raw, str) and raw.strip() == ""):
            return None
        if isinstance(raw, bool):
            raise TypeError("expected a number")
        if isinstance(raw, (int, float)):
            return raw
        text = str(raw).strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            raise ValueError("expected a number") from None

    def validate(self, value: Any, spec: FieldSpec) -> None:
        if value is None:
            return
        minimum = spec.options.get("minimum")
        if minimum is not None and value < minimum:
            raise ValueError(f"value {value} < minimum {minimum}")
        maximum = spec.options.get("maximum")
        if maximum is not None and value > maximum:
            raise ValueError(f"value {value} > maximum {maximum}")


class CheckboxAdapter:
    """Adapter for a single on/off checkbox."""

    _TRUE = {"1", "true", "on", "yes"}
    _FALSE = {"", "0", "false", "off", "no"}

    def parse(self, raw: Any) -> bool:
        if isinstance(raw, bool):
            return raw
        if raw is None:
            return False
        if isinstance(raw, (list, tuple)):
            # hidden "0" plus the checked "1" post as two values
            return any(self.parse(r) for r in raw)
        lowered = str(raw).strip().lower()
        if lowered in self._TRUE:
            return True
        if lowered in self._FALSE:
            return False
        raise ValueError(f"invalid checkbox value: {raw!r}")

    def validate(self, value: Any, spec: FieldSpec) -> None:
        if not isinstance(value, bool):
            raise TypeError("expected bool")


class SelectAdapter:
    """Adapter for a single choice out of ``options["choices"]``."""

    def parse(self, raw: Any) -> str:
        if isinstance(raw, (list, tuple, dict)):
            raise TypeError("expected a single choice")
        return "" if raw is None else str(raw)

    def validate(self, value: Any, spec: FieldSpec) -> None:
        allowed = [v for v, _ in widgets.choice_items(spec)]
        if allowed and value not in allowed:
            raise ValueError(f"invalid choice: {value!r}")


class CheckboxListAdapter:
    """Adapter for a list of choices."""

    def parse(self, raw: Any) -> list[str]:
        if raw is None:
            return []
        if isinstance(raw, str):
            raw = [raw]
        if not isinstance(raw, Iterable) or isinstance(raw, Mapping):
            raise TypeError("expected a list of choices")
        return [str(r) for r in raw if str(r) != ""]

    def validate(self, value: Any, spec: FieldSpec) -> None:
        allowed = [v for v, _ in widgets.choice_items(spec)]
        for item in value:
            if allowed and item not in allowed:
                raise ValueError(f"invalid choice: {item!r}")


@dataclass(frozen=True)
class FieldType:
    """Metadata describing a supported field kind."""

    adapter: ValueAdapter | None
    value_widget: Callable[[Any, Any], str]

    @property
    def persistent(self) -> bool:
        return self.adapter is not None


TYPE_REGISTRY: dict[str, FieldType] = {
    "text": FieldType(TextAdapter(), widgets.text_widget),
    "textarea": FieldType(TextAdapter(), widgets.textarea_widget),
    "number": FieldType(NumberAdapter(), widgets.number_widget),
    "checkbox": FieldType(CheckboxAdapter(), widgets.checkbox_widget),
    "select": FieldType(SelectAdapter(), widgets.select_widget),
    "checkbox_list": FieldType(CheckboxListAdapter(), widgets.checkbox_list_widget),
    "heading": FieldType(None, widgets.heading_widget),
}

######################
##### FIELD SPEC #####
######################


@dataclass(frozen=True)
class FieldSpec:
    """Specification for a single metabox field."""

    name: str
    kind: str = "text"
    label: str | None = None
    description: str | None = None
    default: Any = None
    validator: Rule | None = dataclass_field(default=None, compare=False)
    options: Mapping[str, Any] = dataclass_field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("field name must not be empty")
        if self.kind not in TYPE_REGISTRY:
            raise ValueError(f"unknown field kind: {self.kind!r}")
        if self.validator is not None and not callable(self.validator):
            raise ValueError(f"validator of field {self.name!r} is not callable")
        object.__setattr__(self, "options", MappingProxyType(dict(self.options)))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> FieldSpec:
        """Build a spec from a registration mapping.

        ``type`` is accepted as an alias of ``kind`` and ``validate`` as an
        alias of ``validator``; any other unknown key becomes an option.
        Validators given by name are resolved with
        :func:`~pymetabox.validators.resolve_rule`.
        """
        data = dict(data)
        kind = data.pop("kind", None) or data.pop("type", "text")
        data.pop("type", None)
        validator = data.pop("validator", None) or data.pop("validate", None)
        data.pop("validate", None)
        known = {"name", "label", "description", "default"}
        kwargs = {k: data.pop(k) for k in list(data) if k in known}
        options = dict(data.pop("options", {}) or {})
        options.update(data)
        if "name" not in kwargs:
            raise ValueError("field mapping requires a 'name'")
        return cls(kind=kind, validator=resolve_rule(validator), options=options, **kwargs)

    @property
    def field_type(self) -> FieldType:
        return TYPE_REGISTRY[self.kind]

    @property
    def is_value_component(self) -> bool:
        return self.field_type.persistent

    @property
    def title(self) -> str:
        return self.label or self.name

    def clean(self, raw: Any) -> Any:
        """Return the value to store for posted *raw* data.

        Raises :class:`ValidationError` carrying this field's name.  Only
        the kind's own parse and range checks and ``ValidationError`` from
        the validator count as bad input; anything else the validator
        raises propagates.
        """
        adapter = self.field_type.adapter
        if adapter is None:
            raise ValidationError("field does not accept a value", self.name)
        try:
            value = adapter.parse(raw)
            adapter.validate(value, self)
        except (TypeError, ValueError) as exc:
            raise ValidationError(str(exc), self.name) from exc
        if self.validator is None:
            return value
        try:
            return self.validator(value)
        except ValidationError as exc:
            raise ValidationError(exc.message, self.name) from exc

    def initial(self) -> Any:
        """Return a private copy of the default value."""
        return copy.deepcopy(self.default)

    def render(self, value: Any) -> str:
        control = self.field_type.value_widget(self, value)
        if not self.is_value_component:
            return control
        return widgets.field_row(self, control)


__all__ = ["FieldSpec", "FieldType", "TYPE_REGISTRY", "ValueAdapter"]
