"""Declarative panel definitions.

Panels can be described in a TOML (or JSON) document instead of Python
code::

    [[panels]]
    id = "book"
    title = "Book details"
    screen = "book"

    [[panels.fields]]
    name = "isbn"
    label = "ISBN"
    validate = "required"

    [[panels.fields]]
    name = "pages"
    kind = "number"
    minimum = 1
    validate = [{ rule = "max_length", args = [5] }]

``validate`` takes a rule name, a ``{rule, args, message}`` table or a list
of those, resolved through :func:`pymetabox.validators.resolve_rule`.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

import tomlkit
from tomlkit.exceptions import TOMLKitError

from .errors import DefinitionError
from .fields import FieldSpec
from .panel import PanelSpec
from .validators import Rule, resolve_rule

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .manager import Manager


def _build_rule(raw: Any, where: str) -> Rule | None:
    try:
        return resolve_rule(raw)
    except ValueError as exc:
        raise DefinitionError(f"{where}: {exc}") from exc


def _describe_rule(rule: Rule | None) -> Any:
    if rule is None:
        return None
    parts = getattr(rule, "parts", None)
    if parts is not None:
        return [_describe_rule(p) for p in parts]
    name = getattr(rule, "rule_name", None)
    if name is None:
        raise DefinitionError(f"cannot serialise custom validator {rule!r}")
    args = getattr(rule, "rule_args", [])
    kwargs = getattr(rule, "rule_kwargs", {})
    if not args and not kwargs:
        return name
    entry: dict[str, Any] = {"rule": name}
    if args:
        entry["args"] = args
    if "message" in kwargs:
        entry["message"] = kwargs["message"]
    return entry


def _parse_document(path: Path) -> Mapping[str, Any]:
    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    try:
        if suffix == ".toml":
            return tomlkit.parse(text).unwrap()
        if suffix == ".json":
            return json.loads(text)
    except (TOMLKitError, json.JSONDecodeError) as exc:
        raise DefinitionError(f"{path}: {exc}") from exc
    raise DefinitionError(f"{path}: unsupported definition format {suffix!r}")


def parse_definitions(data: Mapping[str, Any], *, source: str = "<definitions>") -> list[PanelSpec]:
    panels = data.get("panels")
    if not isinstance(panels, list):
        raise DefinitionError(f"{source}: expected a 'panels' array")
    result: list[PanelSpec] = []
    for index, entry in enumerate(panels):
        where = f"{source}: panels[{index}]"
        if not isinstance(entry, Mapping) or "id" not in entry:
            raise DefinitionError(f"{where}: panel requires an 'id'")
        entry = dict(entry)
        fields = []
        for f_index, raw_field in enumerate(entry.pop("fields", []) or []):
            f_where = f"{where}.fields[{f_index}]"
            if not isinstance(raw_field, Mapping):
                raise DefinitionError(f"{f_where}: expected a table")
            raw_field = dict(raw_field)
            raw_field["validator"] = _build_rule(raw_field.pop("validate", None), f_where)
            try:
                fields.append(FieldSpec.from_mapping(raw_field))
            except ValueError as exc:
                raise DefinitionError(f"{f_where}: {exc}") from exc
        panel_id = str(entry.pop("id"))
        try:
            result.append(PanelSpec.from_args(panel_id, {**entry, "fields": fields}))
        except (TypeError, ValueError) as exc:
            raise DefinitionError(f"{where}: {exc}") from exc
    return result


def load_definitions(path: Path | str) -> list[PanelSpec]:
    """Load panel specifications from a ``.toml`` or ``.json`` file."""
    path = Path(path)
    return parse_definitions(_parse_document(path), source=str(path))


def register_definitions(manager: Manager, path: Path | str) -> list[str]:
    """Register every panel defined in *path*; return the registered ids."""
    ids = []
    for spec in load_definitions(path):
        manager.register(spec.id, spec)
        ids.append(spec.id)
    return ids


def _field_doc(spec: FieldSpec) -> dict[str, Any]:
    data: dict[str, Any] = {"name": spec.name, "kind": spec.kind}
    if spec.label is not None:
        data["label"] = spec.label
    if spec.description is not None:
        data["description"] = spec.description
    if spec.default is not None:
        data["default"] = spec.default
    data.update({k: v for k, v in spec.options.items() if v is not None})
    rule = _describe_rule(spec.validator)
    if rule is not None:
        data["validate"] = rule
    return data


def to_document(panels: Iterable[PanelSpec]) -> dict[str, Any]:
    out = []
    for panel in panels:
        data: dict[str, Any] = {"id": panel.id}
        if panel.title is not None:
            data["title"] = panel.title
        if panel.screen:
            data["screen"] = panel.screen[0] if len(panel.screen) == 1 else list(panel.screen)
        data["context"] = panel.context
        data["priority"] = panel.priority
        data["fields"] = [_field_doc(f) for f in panel.fields]
        out.append(data)
    return {"panels": out}


def _inline(value: Any) -> Any:
    # nested values stay on the field's line instead of opening sub-tables
    if isinstance(value, Mapping):
        table = tomlkit.inline_table()
        table.update({k: _inline(v) for k, v in value.items()})
        return table
    if isinstance(value, list):
        array = tomlkit.array()
        for v in value:
            array.append(_inline(v))
        return array
    return value


def dumps_definitions(panels: Iterable[PanelSpec]) -> str:
    doc = tomlkit.document()
    array = tomlkit.aot()
    for panel in to_document(panels)["panels"]:
        fields = panel.pop("fields")
        table = tomlkit.table()
        table.update(panel)
        field_array = tomlkit.aot()
        for f in fields:
            f_table = tomlkit.table()
            f_table.update({k: _inline(v) for k, v in f.items()})
            field_array.append(f_table)
        table.append("fields", field_array)
        array.append(table)
    doc.append("panels", array)
    return tomlkit.dumps(doc)


def dump_definitions(path: Path | str, panels: Iterable[PanelSpec]) -> None:
    """Write *panels* as a TOML document to *path*."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(dumps_definitions(panels), encoding="utf-8")
    tmp.replace(path)


__all__ = [
    "dump_definitions",
    "dumps_definitions",
    "load_definitions",
    "parse_definitions",
    "register_definitions",
    "to_document",
]
