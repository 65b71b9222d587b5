from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .config import load_settings
from .definitions import dumps_definitions, load_definitions, register_definitions, to_document
from .errors import DefinitionError, MetaboxError
from .host import ContentItem, InProcessHost
from .manager import Manager
from .paths import settings_file, user_cache_dir, user_config_dir, user_data_dir
from .stores import open_content_store


def _manager(args: argparse.Namespace) -> Manager:
    settings = load_settings(args.config)
    store = open_content_store(args.store if args.store is not None else settings.store_path)
    manager = Manager(settings=settings, store=store)
    register_definitions(manager, args.definitions)
    return manager


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def show_paths(args: argparse.Namespace) -> int:
    data = {
        "user_config": user_config_dir(),
        "user_data": user_data_dir(),
        "user_cache": user_cache_dir(),
        "settings": settings_file(),
    }
    if args.as_json:
        print(json.dumps({k: str(v) for k, v in data.items()}))
    else:
        for k, v in data.items():
            print(f"{k}: {v}")
    return 0


def panels_cmd(args: argparse.Namespace) -> int:
    panels = load_definitions(args.definitions)
    if args.format == "json":
        print(json.dumps(to_document(panels), indent=2))
        return 0
    if args.format == "toml":
        print(dumps_definitions(panels).rstrip())
        return 0
    for panel in panels:
        screens = ", ".join(panel.screen) or "-"
        print(f"{panel.id}: {panel.title or ''} [{screens}] {panel.context}/{panel.priority}")
        for field in panel.fields:
            print(f"  {field.name} ({field.kind}) default={field.default!r}")
    return 0


def render_cmd(args: argparse.Namespace) -> int:
    manager = _manager(args)
    host = InProcessHost()
    manager.attach(host)
    host.do_action("add_meta_boxes")
    if args.panel not in host.panels:
        print(f"unknown panel: {args.panel}", file=sys.stderr)
        return 1
    host.render_panel(ContentItem(args.content_id), args.panel, sys.stdout, user=args.user)
    print()
    return 0


def get_cmd(args: argparse.Namespace) -> int:
    manager = _manager(args)
    try:
        value = manager.get_meta_box_value(args.panel, args.field, args.content_id)
    except MetaboxError as exc:
        print(f"not found: {exc}", file=sys.stderr)
        return 1
    print(json.dumps(value) if args.as_json else value)
    return 0


def build_parser(prog: str | None = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=prog or "pymetabox")
    parser.add_argument("--config", type=Path, default=None, help="Path to settings.ini")
    subparsers = parser.add_subparsers(dest="cmd")

    p_paths = subparsers.add_parser("paths", help="Show pymetabox paths.")
    p_paths.add_argument("--json", dest="as_json", action="store_true")
    p_paths.set_defaults(func=show_paths)

    p_panels = subparsers.add_parser("panels", help="List the panels of a definitions file.")
    p_panels.add_argument("definitions", type=Path)
    p_panels.add_argument("--as", dest="format", choices=["text", "json", "toml"], default="text")
    p_panels.set_defaults(func=panels_cmd)

    p_render = subparsers.add_parser("render", help="Print the markup of a panel.")
    p_render.add_argument("definitions", type=Path)
    p_render.add_argument("panel")
    p_render.add_argument("--content-id", required=True)
    p_render.add_argument("--store", type=Path, default=None)
    p_render.add_argument("--user", default=None, help="Render the nonce for this user.")
    p_render.set_defaults(func=render_cmd)

    p_get = subparsers.add_parser("get", help="Print the value of a field.")
    p_get.add_argument("definitions", type=Path)
    p_get.add_argument("panel")
    p_get.add_argument("field")
    p_get.add_argument("--content-id", required=True)
    p_get.add_argument("--store", type=Path, default=None)
    p_get.add_argument("--json", dest="as_json", action="store_true")
    p_get.set_defaults(func=get_cmd)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        return 1
    try:
        return int(func(args))
    except DefinitionError as exc:
        print(f"invalid definitions: {exc}", file=sys.stderr)
        return 2
    except SystemExit as exc:  # pragma: no cover - argparse may raise
        return int(exc.code)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
