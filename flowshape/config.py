# flowshape/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from flowshape.client.workflows import DEFAULT_TIMEOUT
from flowshape.utils.io import PathLike, load_any

DEFAULT_BASE_URL = "http://localhost:3000"

# environment variable -> Settings attribute
_ENV_KEYS = {
    "FLOWSHAPE_BASE_URL": "base_url",
    "FLOWSHAPE_TOKEN": "token",
    "FLOWSHAPE_TIMEOUT": "timeout",
    "LOG_LEVEL": "log_level",
    "FLOWSHAPE_LOG_DIR": "log_dir",
}


@dataclass(frozen=True)
class Settings:
    base_url: str = DEFAULT_BASE_URL
    token: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    log_level: str = "INFO"
    log_dir: Optional[Path] = None


def _coerce(name: str, value: Any) -> Any:
    if value is None:
        return None
    if name == "timeout":
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ValueError(f"timeout must be a number, got {value!r}") from None
    if name == "log_dir":
        return Path(value)
    return str(value)


def _apply(settings: Settings, values: Mapping[str, Any]) -> Settings:
    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ValueError(f"Unknown setting(s): {', '.join(unknown)}")
    return replace(settings, **{k: _coerce(k, v) for k, v in values.items()})


def load_settings(
    config_file: Optional[PathLike] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Settings:
    """
    Resolve settings: defaults, then the optional YAML/JSON file, then the
    environment (which wins).
    """
    env = os.environ if env is None else env
    settings = Settings()

    if config_file is not None:
        data = load_any(config_file) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {config_file} must contain a mapping")
        settings = _apply(settings, data)

    from_env: Dict[str, Any] = {attr: env[key] for key, attr in _ENV_KEYS.items() if env.get(key)}
    return _apply(settings, from_env)
