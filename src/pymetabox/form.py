"""Form reconciliation for a single metabox.

A :class:`Form` owns the ordered fields of one panel and merges three
sources into the effective instance: newly submitted values, values already
in storage and field defaults.  Only submitted values are validated; stored
values are trusted so that tightening a rule never rejects data that was
accepted earlier.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, NamedTuple

from .errors import DuplicateFieldError, UnknownFieldError, ValidationError
from .fields import FieldSpec


class Reconciliation(NamedTuple):
    instance: dict[str, Any]
    errors: dict[str, str]


class Form:
    def __init__(self, fields: Iterable[FieldSpec]) -> None:
        self.fields: tuple[FieldSpec, ...] = tuple(fields)
        self._by_name: dict[str, FieldSpec] = {}
        for spec in self.fields:
            if spec.name in self._by_name:
                raise DuplicateFieldError(spec.name)
            self._by_name[spec.name] = spec

    def __len__(self) -> int:
        return len(self.fields)

    def get_component_by_name(self, name: str) -> FieldSpec:
        try:
            return self._by_name[name]
        except KeyError as exc:
            raise UnknownFieldError(name) from exc

    def get_value_components(self) -> list[FieldSpec]:
        return [f for f in self.fields if f.is_value_component]

    def defaults(self) -> dict[str, Any]:
        return {f.name: f.initial() for f in self.get_value_components()}

    def reconcile(
        self,
        submitted: Mapping[str, Any],
        stored: Mapping[str, Any],
    ) -> Reconciliation:
        instance: dict[str, Any] = {}
        errors: dict[str, str] = {}
        for spec in self.get_value_components():
            fallback = stored[spec.name] if spec.name in stored else spec.initial()
            if spec.name not in submitted:
                instance[spec.name] = fallback
                continue
            try:
                instance[spec.name] = spec.clean(submitted[spec.name])
            except ValidationError as exc:
                errors[spec.name] = exc.message
                instance[spec.name] = fallback
        return Reconciliation(instance, errors)


__all__ = ["Form", "Reconciliation"]
