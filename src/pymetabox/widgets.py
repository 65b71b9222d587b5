"""HTML widgets for metabox fields.

Every widget is a plain function ``widget(spec, value) -> str`` returning
the markup of the input control only.  :func:`field_row` wraps a control
with its label and description.  All text is escaped here; callers pass raw
values.
"""

from __future__ import annotations

from collections.abc import Iterable
from html import escape
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .fields import FieldSpec


def _attr(value: Any) -> str:
    return escape("" if value is None else str(value), quote=True)


def _input_id(spec: FieldSpec) -> str:
    return f"pymetabox-{spec.name}"


def choice_items(spec: FieldSpec) -> list[tuple[str, str]]:
    """Return ``(value, label)`` pairs from the ``choices`` option."""
    choices = spec.options.get("choices") or ()
    if isinstance(choices, dict):
        return [(str(k), str(v)) for k, v in choices.items()]
    return [(str(c), str(c)) for c in choices]


def text_widget(spec: FieldSpec, value: Any) -> str:
    placeholder = spec.options.get("placeholder")
    extra = f' placeholder="{_attr(placeholder)}"' if placeholder else ""
    return (
        f'<input type="text" id="{_input_id(spec)}" name="{_attr(spec.name)}" '
        f'value="{_attr(value)}"{extra} />'
    )


def textarea_widget(spec: FieldSpec, value: Any) -> str:
    rows = int(spec.options.get("rows", 4))
    return (
        f'<textarea id="{_input_id(spec)}" name="{_attr(spec.name)}" rows="{rows}">'
        f"{escape('' if value is None else str(value))}</textarea>"
    )


def number_widget(spec: FieldSpec, value: Any) -> str:
    attrs = ""
    for opt in ("minimum", "maximum", "step"):
        if spec.options.get(opt) is not None:
            html_name = {"minimum": "min", "maximum": "max"}.get(opt, opt)
            attrs += f' {html_name}="{_attr(spec.options[opt])}"'
    return (
        f'<input type="number" id="{_input_id(spec)}" name="{_attr(spec.name)}" '
        f'value="{_attr(value)}"{attrs} />'
    )


def checkbox_widget(spec: FieldSpec, value: Any) -> str:
    # the hidden input makes an unchecked box post "0" instead of nothing
    checked = " checked" if value in (True, "1", "true", "on") else ""
    return (
        f'<input type="hidden" name="{_attr(spec.name)}" value="0" />'
        f'<input type="checkbox" id="{_input_id(spec)}" name="{_attr(spec.name)}" '
        f'value="1"{checked} />'
    )


def select_widget(spec: FieldSpec, value: Any) -> str:
    options = []
    for opt_value, label in choice_items(spec):
        selected = " selected" if value is not None and str(value) == opt_value else ""
        options.append(
            f'<option value="{_attr(opt_value)}"{selected}>{escape(label)}</option>'
        )
    return (
        f'<select id="{_input_id(spec)}" name="{_attr(spec.name)}">'
        + "".join(options)
        + "</select>"
    )


def checkbox_list_widget(spec: FieldSpec, value: Any) -> str:
    current: set[str] = set()
    if isinstance(value, Iterable) and not isinstance(value, str):
        current = {str(v) for v in value}
    elif value is not None:
        current = {str(value)}
    items = [f'<input type="hidden" name="{_attr(spec.name)}" value="" />']
    for opt_value, label in choice_items(spec):
        checked = " checked" if opt_value in current else ""
        items.append(
            f'<label><input type="checkbox" name="{_attr(spec.name)}" '
            f'value="{_attr(opt_value)}"{checked} /> {escape(label)}</label>'
        )
    return '<div class="pymetabox-checkbox-list">' + "".join(items) + "</div>"


def heading_widget(spec: FieldSpec, value: Any) -> str:
    text = spec.label or spec.name
    return f'<h4 class="pymetabox-heading">{escape(text)}</h4>'


def field_row(spec: FieldSpec, control: str) -> str:
    """Wrap *control* with the label and description of *spec*."""
    parts = [f'<div class="pymetabox-field pymetabox-field-{_attr(spec.kind)}">']
    if spec.label:
        parts.append(
            f'<label class="pymetabox-label" for="{_input_id(spec)}">'
            f"{escape(spec.label)}</label>"
        )
    parts.append(f'<div class="pymetabox-control">{control}</div>')
    if spec.description:
        parts.append(f'<p class="description">{escape(spec.description)}</p>')
    parts.append("</div>")
    return "".join(parts)


def error_notice(title: str, message: str) -> str:
    return (
        '<div class="notice notice-error"><p>'
        f"<strong>{escape(title)}</strong> {escape(message)}</p></div>"
    )


def nonce_input(name: str, token: str) -> str:
    return f'<input type="hidden" name="{_attr(name)}" value="{_attr(token)}" />'


def style_block(css: str) -> str:
    return f"<style>{css}</style>"


__all__ = [
    "checkbox_list_widget",
    "checkbox_widget",
    "choice_items",
    "error_notice",
    "field_row",
    "heading_widget",
    "nonce_input",
    "number_widget",
    "select_widget",
    "style_block",
    "text_widget",
    "textarea_widget",
]
