from __future__ import annotations

import os
from pathlib import Path

from platformdirs import (
    user_cache_dir as _ucache,
    user_config_dir as _uc,
    user_data_dir as _ud,
)

APP_NAME = "pymetabox"


def _app_name(default: str) -> str:
    return os.getenv("PYMETABOX_APP_NAME", default)


def user_config_dir(app_name: str = APP_NAME) -> Path:
    app = _app_name(app_name)
    return Path(_uc(appname=app)).resolve()


def user_data_dir(app_name: str = APP_NAME) -> Path:
    app = _app_name(app_name)
    return Path(_ud(appname=app)).resolve()


def user_cache_dir(app_name: str = APP_NAME) -> Path:
    app = _app_name(app_name)
    return Path(_ucache(appname=app)).resolve()


def settings_file() -> Path:
    return user_config_dir() / "settings.ini"
