"""Provider and stack config loading from YAML with environment substitution."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, cast

import yaml
from pydantic import ValidationError

from nic_associations.config.models import ProviderConfig, StackConfig

PROVIDER_DEFAULTS = Path(__file__).parent / "defaults" / "provider.yaml"

# ${NAME} or ${NAME:-fallback}; "\}" escapes a brace inside the fallback.
_ENV_REFERENCE = re.compile(r"\$\{(?P<name>[^}:]+)(?::-(?P<fallback>(?:[^}\\]|\\.)*))?}")


def _env_value(match: re.Match[str]) -> str:
    name = match.group("name")
    if name in os.environ:
        return os.environ[name]
    fallback = match.group("fallback")
    if fallback is None:
        msg = f"Environment variable '{name}' is not set and no default provided"
        raise ValueError(msg)
    return fallback.replace("\\}", "}")


def resolve_env_vars(data: Any) -> Any:
    """Substitute environment references in every string of parsed YAML."""
    if isinstance(data, dict):
        return {key: resolve_env_vars(value) for key, value in data.items()}
    if isinstance(data, list):
        return [resolve_env_vars(item) for item in data]
    return _ENV_REFERENCE.sub(_env_value, data) if isinstance(data, str) else data


def _parse_error(path: Path, exc: yaml.YAMLError) -> ValueError:
    mark = getattr(exc, "problem_mark", None)
    where = f" at line {mark.line + 1}, column {mark.column + 1}" if mark else ""
    return ValueError(f"Failed to parse YAML in {path}{where}: {exc}")


def load_yaml(path: str | Path) -> dict[str, Any]:
    """Read a YAML mapping from *path* with environment references resolved."""
    path = Path(path)
    try:
        text = path.read_text()
    except FileNotFoundError:
        msg = f"Config file not found: {path}"
        raise FileNotFoundError(msg) from None
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise _parse_error(path, exc) from exc
    if not isinstance(data, dict):
        msg = f"Expected a YAML mapping at top level in {path}, got {type(data).__name__}"
        raise TypeError(msg)
    return cast(dict[str, Any], resolve_env_vars(data))


def _load_provider_defaults() -> dict[str, Any]:
    return load_yaml(PROVIDER_DEFAULTS)


def _overlay(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Return *base* with *overrides* applied; nested mappings merge key by key."""
    result = dict(base)
    for key, value in overrides.items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = _overlay(current, value)
        result[key] = value
    return result


def load_provider_config(path: str | Path | None = None) -> ProviderConfig:
    """Load provider settings; a file at *path* overrides the built-in defaults."""
    data = _load_provider_defaults()
    if path is not None:
        data = _overlay(data, load_yaml(path))
    try:
        return ProviderConfig.model_validate(data)
    except ValidationError as exc:
        msg = f"Invalid provider config ({path or 'built-in defaults'}):\n{exc}"
        raise ValueError(msg) from exc


def load_stack_config(path: str | Path) -> StackConfig:
    """Load a YAML file listing the associations to manage."""
    data = load_yaml(path)
    try:
        return StackConfig.model_validate(data)
    except ValidationError as exc:
        msg = f"Invalid stack config ({path}):\n{exc}"
        raise ValueError(msg) from exc
