from __future__ import annotations

import configparser
import logging
import os
import secrets
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path

from .errors import ConfigError
from .paths import settings_file

logger = logging.getLogger(__name__)

SECTION = "pymetabox"
ENV_PREFIX = "PYMETABOX_"

_INT_KEYS = {"error_ttl", "nonce_lifetime"}
_PATH_KEYS = {"store_path", "transient_dir"}


@dataclass(frozen=True)
class Settings:
    """Runtime settings shared by all metaboxes of a manager."""

    nonce_action: str = "pymetabox"
    error_ttl: int = 60
    nonce_lifetime: int = 86400
    error_key_prefix: str = "pymetabox_errors"
    secret_key: str | None = None
    store_path: Path | None = None
    transient_dir: Path | None = None

    def error_key(self, content_id: object, panel_id: str) -> str:
        return f"{self.error_key_prefix}_{content_id}_{panel_id}"


# ---------------------------------------------------------------------------
# Reading helpers
# ---------------------------------------------------------------------------

def read_section(path: Path, section: str = SECTION) -> dict[str, str]:
    parser = configparser.ConfigParser(strict=False)
    if not path.exists():
        return {}
    try:
        parser.read(path, encoding="utf-8")
    except configparser.Error as exc:
        raise ConfigError(f"{path}: {exc}") from exc
    if not parser.has_section(section):
        return {}
    return dict(parser.items(section))


def _coerce(values: Mapping[str, str], source: str) -> dict[str, object]:
    known = {f.name for f in fields(Settings)}
    out: dict[str, object] = {}
    for key, raw in values.items():
        if key not in known:
            logger.debug("ignoring unknown setting %r from %s", key, source)
            continue
        if key in _INT_KEYS:
            try:
                out[key] = int(raw)
            except ValueError:
                raise ConfigError(f"{source}: {key} must be an integer, got {raw!r}") from None
        elif key in _PATH_KEYS:
            out[key] = Path(raw).expanduser() if raw else None
        else:
            out[key] = raw
    return out


def load_settings(
    path: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
) -> Settings:
    """Load settings from *path* and ``PYMETABOX_*`` environment variables.

    The INI file defaults to ``settings.ini`` in the user config directory.
    Environment variables win over the file.
    """
    path = Path(path) if path is not None else settings_file()
    env = os.environ if env is None else env
    values = _coerce(read_section(path), str(path))
    env_values = {
        k[len(ENV_PREFIX):].lower(): v
        for k, v in env.items()
        if k.startswith(ENV_PREFIX) and k != ENV_PREFIX + "APP_NAME"
    }
    values.update(_coerce(env_values, "environment"))
    return replace(Settings(), **values)


def resolve_secret(settings: Settings) -> str:
    """Return the configured secret or a random one for this process."""
    if settings.secret_key:
        return settings.secret_key
    logger.warning(
        "no secret_key configured; using a per-process secret, "
        "tokens will not survive a restart"
    )
    return secrets.token_hex(32)


__all__ = ["Settings", "load_settings", "read_section", "resolve_secret"]
