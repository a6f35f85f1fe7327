"""Configuration loading pipeline.

Sources are read in order and deep-merged over the defaults, so later sources
win:

1. ``logfmtkit.{toml,yaml,yml}`` in the platform user config directory
2. the same files in the current directory
3. ``[tool.logfmtkit]`` in ``./pyproject.toml``
4. ``LOGFMTKIT__SECTION__KEY`` environment variables
5. explicit overrides
"""

from __future__ import annotations

import json
import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Mapping, Tuple

import yaml
from platformdirs import user_config_dir

from .schema import LogfmtConfig, build_config, default_config

logger = logging.getLogger(__name__)

ENV_PREFIX = "LOGFMTKIT__"
CONFIG_STEM = "logfmtkit"

Reader = Callable[[Path], Any]


def _read_toml(path: Path) -> Any:
    with path.open("rb") as fh:
        return tomllib.load(fh)


def _read_yaml(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as fh:
        return yaml.safe_load(fh)


_READERS: Tuple[Tuple[str, Reader], ...] = (
    (".toml", _read_toml),
    (".yaml", _read_yaml),
    (".yml", _read_yaml),
)


def _as_section(data: Any) -> Dict[str, Any]:
    if not isinstance(data, Mapping):
        return {}
    return {str(key): value for key, value in data.items()}


def deep_merge(base: Dict[str, Any], incoming: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge ``incoming`` into ``base`` in place; nested mappings merge key by key."""

    for key, value in incoming.items():
        if isinstance(value, Mapping):
            current = base.get(key)
            target = current if isinstance(current, dict) else {}
            base[key] = deep_merge(target, value)
        else:
            base[key] = value
    return base


def _config_files(directory: Path) -> Iterator[Tuple[Path, Reader]]:
    for suffix, reader in _READERS:
        path = directory / f"{CONFIG_STEM}{suffix}"
        if path.is_file():
            yield path, reader


def _from_directory(directory: Path) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    for path, reader in _config_files(directory):
        logger.debug("Reading configuration from %s", path)
        deep_merge(data, _as_section(reader(path)))
    return data


def _from_user_dir() -> Dict[str, Any]:
    return _from_directory(Path(user_config_dir(CONFIG_STEM)))


def _from_cwd() -> Dict[str, Any]:
    return _from_directory(Path.cwd())


def _from_pyproject() -> Dict[str, Any]:
    path = Path("pyproject.toml")
    if not path.is_file():
        return {}
    tool = _as_section(_read_toml(path).get("tool"))
    return _as_section(tool.get(CONFIG_STEM))


def parse_env_value(raw: str) -> Any:
    """Interpret an environment string as bool, number, JSON list/object or text."""

    text = raw.strip()
    if text.lower() in ("true", "false"):
        return text.lower() == "true"
    if text[:1] in ("[", "{") or text.lstrip("+-").replace(".", "", 1).isdigit():
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            logger.debug("Keeping %r as text; it is not valid JSON", text)
    return text


def _from_env(environ: Mapping[str, str] | None = None) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    source = os.environ if environ is None else environ
    for name, raw in source.items():
        if not name.startswith(ENV_PREFIX):
            continue
        *sections, option = name[len(ENV_PREFIX) :].lower().split("__")
        nested: Dict[str, Any] = {option: parse_env_value(raw)}
        for section in reversed(sections):
            nested = {section: nested}
        deep_merge(data, nested)
    return data


_SOURCES: Tuple[Tuple[str, Callable[[], Dict[str, Any]]], ...] = (
    ("user", _from_user_dir),
    ("local", _from_cwd),
    ("pyproject", _from_pyproject),
    ("environment", _from_env),
)


def load_configuration(overrides: Mapping[str, Any] | None = None) -> LogfmtConfig:
    """Load configuration from supported sources in precedence order."""

    merged = default_config()
    for name, read in _SOURCES:
        layer = read()
        if layer:
            logger.debug("Applying %s configuration: %s", name, sorted(layer))
            deep_merge(merged, layer)
    if overrides:
        deep_merge(merged, overrides)
    return build_config(merged)
