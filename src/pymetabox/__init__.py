from collections.abc import Mapping
from typing import Any

from .errors import MetaboxError
from .fields import FieldSpec
from .form import Form
from .host import ContentItem, InProcessHost, Request
from .manager import Manager, get_manager, reset_manager
from .metabox import Metabox
from .panel import PanelSpec


def add_meta_box(panel_id: str, args: Mapping[str, Any]) -> Metabox:
    """Register a metabox with the process wide manager."""
    return get_manager().register(panel_id, args)


def get_meta_box_value(panel_id: str, name: str, content_id: Any) -> Any:
    """Return the value of field *name*, or its default if none was saved."""
    return get_manager().get_meta_box_value(panel_id, name, content_id)


__all__ = [
    "ContentItem",
    "FieldSpec",
    "Form",
    "InProcessHost",
    "Manager",
    "Metabox",
    "MetaboxError",
    "PanelSpec",
    "Request",
    "add_meta_box",
    "get_manager",
    "get_meta_box_value",
    "reset_manager",
]
