"""Reusable validation rules for field values.

A rule is a callable taking the parsed value and returning the value to
store.  Rules signal failure by raising :class:`~pymetabox.errors.ValidationError`.
Rules can be looked up by name so that declarative panel definitions can
refer to them.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from .errors import ValidationError

Rule = Callable[[Any], Any]


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def required(message: str = "must not be empty") -> Rule:
    def rule(value: Any) -> Any:
        if _is_empty(value):
            raise ValidationError(message)
        return value

    return rule


def numeric(message: str = "must be a number") -> Rule:
    def rule(value: Any) -> Any:
        if isinstance(value, bool):
            raise ValidationError(message)
        if isinstance(value, (int, float)):
            return value
        try:
            float(str(value).strip())
        except ValueError:
            raise ValidationError(message) from None
        return value

    return rule


def max_length(limit: int, message: str | None = None) -> Rule:
    msg = message or f"must be at most {limit} characters"

    def rule(value: Any) -> Any:
        if value is not None and len(str(value)) > limit:
            raise ValidationError(msg)
        return value

    return rule


def pattern(regex: str, message: str | None = None) -> Rule:
    compiled = re.compile(regex)
    msg = message or f"must match {regex!r}"

    def rule(value: Any) -> Any:
        if value is None or not compiled.fullmatch(str(value)):
            raise ValidationError(msg)
        return value

    return rule


def one_of(choices: Iterable[Any], message: str | None = None) -> Rule:
    allowed = tuple(choices)
    msg = message or "must be one of " + ", ".join(map(str, allowed))

    def rule(value: Any) -> Any:
        if value not in allowed:
            raise ValidationError(msg)
        return value

    return rule


def chain(*rules: Rule) -> Rule:
    """Apply *rules* in order, feeding each the previous result."""

    def rule(value: Any) -> Any:
        for r in rules:
            value = r(value)
        return value

    rule.parts = rules  # type: ignore[attr-defined]
    return rule


VALIDATORS: dict[str, Callable[..., Rule]] = {
    "required": required,
    "numeric": numeric,
    "max_length": max_length,
    "pattern": pattern,
    "one_of": one_of,
}


def get_validator(name: str, *args: Any, **kwargs: Any) -> Rule:
    """Build the rule registered under *name* with the given arguments."""
    try:
        factory = VALIDATORS[name]
    except KeyError:
        raise ValueError(f"unknown validator: {name!r}") from None
    rule = factory(*args, **kwargs)
    rule.rule_name = name  # type: ignore[attr-defined]
    rule.rule_args = list(args)  # type: ignore[attr-defined]
    rule.rule_kwargs = dict(kwargs)  # type: ignore[attr-defined]
    return rule


def resolve_rule(raw: Any) -> Rule | None:
    """Turn a ``validate`` entry into a rule.

    Accepts a callable, a rule name, a ``{rule, args, message}`` mapping or
    a list of those (chained in order).  Raises :class:`ValueError` for
    anything else.
    """
    if raw is None or callable(raw):
        return raw
    if isinstance(raw, str):
        return get_validator(raw)
    if isinstance(raw, (list, tuple)):
        rules = [r for r in (resolve_rule(item) for item in raw) if r is not None]
        if len(rules) == 1:
            return rules[0]
        return chain(*rules)
    if isinstance(raw, Mapping) and "rule" in raw:
        args = list(raw.get("args", []))
        kwargs = {"message": raw["message"]} if "message" in raw else {}
        try:
            return get_validator(str(raw["rule"]), *args, **kwargs)
        except TypeError as exc:
            raise ValueError(f"bad arguments for {raw['rule']!r}: {exc}") from exc
    raise ValueError(f"invalid validate entry {raw!r}")


__all__ = [
    "VALIDATORS",
    "chain",
    "get_validator",
    "max_length",
    "numeric",
    "one_of",
    "pattern",
    "required",
    "resolve_rule",
]
