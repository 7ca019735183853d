"""Front matter for the manuscript, loaded from config.json."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path

from dateutil import tz

from chatbook.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.json")

_REQUIRED_KEYS = ("title", "copyright", "dedication_title", "dedication_message")


@dataclass(frozen=True)
class ManuscriptConfig:
    """Book front matter. Values are inserted into the template verbatim."""

    title: str
    copyright: str
    dedication_title: str
    dedication_message: str
    preface: str | None = None
    timezone: str | None = None


def load_config(config_path: Path = DEFAULT_CONFIG_PATH) -> ManuscriptConfig:
    """Read and validate ``config_path``."""
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found at {config_path}") from e
    except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Could not read config {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config {config_path} must be a JSON object")

    missing = [key for key in _REQUIRED_KEYS if not isinstance(data.get(key), str)]
    if missing:
        raise ConfigError(f"Config {config_path} is missing string value(s) for: {', '.join(missing)}")

    for key in ("preface", "timezone"):
        if data.get(key) is not None and not isinstance(data[key], str):
            raise ConfigError(f"Config key {key!r} must be a string")

    unknown = set(data) - set(_REQUIRED_KEYS) - {"preface", "timezone"}
    if unknown:
        logger.warning(f"Ignoring unknown config keys: {', '.join(sorted(unknown))}")

    return ManuscriptConfig(
        title=data["title"],
        copyright=data["copyright"],
        dedication_title=data["dedication_title"],
        dedication_message=data["dedication_message"],
        preface=data.get("preface") or None,
        timezone=data.get("timezone") or None,
    )


def resolve_timezone(name: str | None) -> tzinfo:
    """IANA zone for ``name``, or the machine's local zone when None."""
    if not name:
        return tz.tzlocal()
    zone = tz.gettz(name)
    if zone is None:
        raise ConfigError(f"Unknown time zone: {name!r}")
    return zone
