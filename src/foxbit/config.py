from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import ValidationError

from .settings import Settings

ENV_PREFIX = "FOXBIT_"
DEFAULT_CONFIG = "foxbit.yml"

# Variables read elsewhere, never mapped onto settings
RESERVED_VARIABLES = frozenset({"CONFIG", "LOG_LEVEL", "LOG_FRAMES"})

# Sections whose values stay verbatim: "012345" is a 2FA code, not an int
_VERBATIM_SECTIONS = frozenset({"credentials"})


def _read_mapping(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Config root must be a mapping, got: {type(loaded)!r} in {path}")
    return loaded


def _env_value(section: str, raw: str) -> Any:
    if section in _VERBATIM_SECTIONS:
        return raw
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError:
        return raw


def _merge(base: dict[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(value, dict) and isinstance(current, dict):
            merged[key] = _merge(current, value)
        else:
            merged[key] = value
    return merged


def env_overrides(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Collect ``FOXBIT_SECTION__KEY=value`` variables into a nested mapping.

    Values are parsed as YAML scalars or flow collections, except under
    ``credentials`` where they are kept as given.

    Raises:
        ValueError: If a variable names no top-level setting
    """
    environ = os.environ if environ is None else environ
    tree: dict[str, Any] = {}

    for name in sorted(environ):
        if not name.startswith(ENV_PREFIX):
            continue
        remainder = name[len(ENV_PREFIX) :]
        if remainder in RESERVED_VARIABLES:
            continue

        path = [part.lower() for part in remainder.split("__") if part]
        if not path:
            continue
        if path[0] not in Settings.model_fields:
            raise ValueError(f"{name} does not match any setting")

        node = tree
        for key in path[:-1]:
            node = node.setdefault(key, {})
            if not isinstance(node, dict):
                raise ValueError(f"{name} conflicts with a scalar override of {key!r}")
        node[path[-1]] = _env_value(path[0], environ[name])

    return tree


def load_settings(config_path: str | Path | None = None, environ: Mapping[str, str] | None = None) -> Settings:
    """Load settings from YAML plus environment overrides.

    The file defaults to ``FOXBIT_CONFIG`` or ``./foxbit.yml``; a missing
    file means defaults.

    Raises:
        ValueError: If the file root is not a mapping, a variable is unknown, or validation fails
    """
    environ = os.environ if environ is None else environ
    path = Path(config_path or environ.get(f"{ENV_PREFIX}CONFIG", DEFAULT_CONFIG))

    data = _merge(_read_mapping(path), env_overrides(environ))

    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration ({path}): {exc}") from exc
