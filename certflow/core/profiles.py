"""Runtime locations and ``profiles.yaml`` loading."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .errors import ConfigError


load_dotenv(override=False)

ROOT_ENV = "CERTFLOW_ROOT"
DEFAULT_PROFILES_FILE = "profiles.yaml"


def _project_root() -> Path:
    env = os.getenv(ROOT_ENV)
    if env:
        return Path(env)
    # In source layout, this file is under <root>/certflow/core
    return Path(__file__).resolve().parents[2]


def _config_dir() -> Path:
    return _project_root() / "certflow" / "config"


def _work_dir() -> Path:
    return _project_root() / "certflow" / "work"


def ensure_work_dirs() -> dict[str, Path]:
    base = _work_dir()
    out = base / "out"
    logs = base / "logs"
    for p in (out, logs):
        p.mkdir(parents=True, exist_ok=True)
    return {"out": out, "logs": logs}


def resolve_config_path(path: str | Path) -> Path:
    p = Path(path).expanduser()
    if p.is_absolute():
        return p
    # Support paths with or without leading 'certflow/'
    parts = p.parts
    if parts and parts[0] == "certflow":
        return _project_root() / p
    return _config_dir() / p


_ENV_REF = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def _env_value(match: re.Match[str]) -> str:
    name = match.group(1)
    value = os.getenv(name)
    if value is None:
        raise ConfigError(f"Environment variable not set: {name}")
    return value


def expand_env(value: Any) -> Any:
    """Expand ``${VAR}`` references, failing when a referenced variable is unset.

    Bare ``$VAR`` text is left alone.
    """

    if isinstance(value, str):
        return _ENV_REF.sub(_env_value, value)
    if isinstance(value, Mapping):
        return {key: expand_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_env(item) for item in value]
    return value


def load_profiles_file(path: str | Path | None = None) -> dict[str, Any]:
    """Read the whole ``profiles.yaml`` document.

    Args:
        path: Optional override; relative paths resolve under ``certflow/config``.

    Returns:
        The parsed top-level mapping.

    Raises:
        ConfigError: If the file is missing or is not a mapping.
    """

    cfg_path = resolve_config_path(path or DEFAULT_PROFILES_FILE)
    if not cfg_path.exists():
        raise ConfigError(f"profiles.yaml not found at {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, Mapping):
        raise ConfigError(f"{cfg_path} must contain a mapping at the top level")
    return dict(data)


def load_section(section: str, path: str | Path | None = None) -> dict[str, Mapping[str, Any]]:
    """Return the named profiles of one top-level section (``google``, ``certificates``)."""

    raw = load_profiles_file(path).get(section)
    if not isinstance(raw, Mapping):
        raise ConfigError(f"profiles.yaml missing '{section}' section")
    profiles: dict[str, Mapping[str, Any]] = {}
    for key, value in raw.items():
        if not isinstance(value, Mapping):
            raise ConfigError(f"{section} profile '{key}' must be a mapping")
        profiles[str(key)] = value
    if not profiles:
        raise ConfigError(f"No {section} profiles defined in profiles.yaml")
    return profiles


def load_profile(section: str, name: str, path: str | Path | None = None) -> Mapping[str, Any]:
    profiles = load_section(section, path)
    profile = profiles.get(name)
    if profile is None:
        raise ConfigError(f"{section} profile '{name}' not found in profiles.yaml (known: {sorted(profiles)})")
    return profile
