"""INI configuration for treewriter.

Keys are hyphenated in the file and underscored in Python. Values in the
known sections are type-coerced using the defaults tables.
"""

from __future__ import annotations

import configparser
import os
from pathlib import Path
from typing import Any

CONFIG_ENV = "TREEWRITER_CONFIG"

DEFAULTS: dict[str, dict[str, Any]] = {
    "treewriter": {
        "data-dir": str(Path.home() / ".local" / "share" / "treewriter"),
        "scroll-speed": 1,
        "scroll-zone": 2,
        "scroll-interval": 1 / 30,
        "drag-threshold": 2,
    },
    "ai": {
        "provider-url": "https://api.openai.com/v1/chat/completions",
        "model-name": "gpt-4o-mini",
        "api-key": "",
        "temperature": 0.7,
    },
}


def _python_key(file_key: str) -> str:
    """Convert file-style key (hyphenated) to Python-style (underscored)."""
    return file_key.replace("-", "_")


def _file_key(python_key: str) -> str:
    """Convert Python-style key (underscored) to file-style (hyphenated)."""
    return python_key.replace("_", "-")


def _coerce(section: str, file_key: str, raw: str):
    """Type-coerce a value using the section's defaults."""
    default = DEFAULTS.get(section, {}).get(file_key)
    if default is None:
        return raw
    if isinstance(default, bool):
        return raw.lower() in ("true", "yes", "1")
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    return raw


def config_path() -> Path:
    """$TREEWRITER_CONFIG, else ~/.config/treewriter/config."""
    env = os.environ.get(CONFIG_ENV)
    if env:
        return Path(env)
    return Path.home() / ".config" / "treewriter" / "config"


def read_config(path: str | Path | None = None) -> dict[str, dict[str, Any]]:
    """Read config into {section: {key: value}}, merging defaults for missing keys.

    A missing file yields the defaults.
    """
    parser = configparser.ConfigParser(interpolation=None)
    parser.read(Path(path) if path is not None else config_path(), encoding="utf-8")

    result: dict[str, dict[str, Any]] = {}
    for section in parser.sections():
        result[section] = {
            _python_key(file_key): _coerce(section, file_key, raw)
            for file_key, raw in parser.items(section)
        }
    for section, defaults in DEFAULTS.items():
        items = result.setdefault(section, {})
        for file_key, default in defaults.items():
            items.setdefault(_python_key(file_key), default)
    return result


def write_config_key(path: str | Path | None, section: str, key: str, value) -> None:
    """Write one key to the config file. key is Python-style (underscores)."""
    target = Path(path) if path is not None else config_path()
    parser = configparser.ConfigParser(interpolation=None)
    parser.read(target, encoding="utf-8")
    if not parser.has_section(section):
        parser.add_section(section)
    if isinstance(value, bool):
        parser.set(section, _file_key(key), str(value).lower())
    else:
        parser.set(section, _file_key(key), str(value))
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8") as f:
        parser.write(f)
