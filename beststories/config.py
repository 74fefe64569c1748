from __future__ import annotations

import json
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional

from beststories.constants import (
    FETCH_TIMEOUT,
    HN_API_BASE,
    LOG_LEVEL,
    REQUEST_TIMEOUT,
)

CONFIG_DIR = Path.home() / ".config" / "hn_best_stories"
CONFIG_FILE = CONFIG_DIR / "config.json"
ENV_PREFIX = "HN_BEST_"


@dataclass(frozen=True)
class Settings:
    """Runtime settings resolved from defaults, config file and environment."""

    base_url: str = HN_API_BASE
    request_timeout: float = REQUEST_TIMEOUT
    fetch_timeout: float = FETCH_TIMEOUT
    log_level: str = LOG_LEVEL


def load_config() -> dict:
    if not CONFIG_FILE.exists():
        return {}
    try:
        with open(CONFIG_FILE, "r") as f:
            data = json.load(f)
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


def save_config(key: str, value: Any) -> None:
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    config = load_config()
    config[key] = value
    with open(CONFIG_FILE, "w") as f:
        json.dump(config, f, indent=2)


def _coerce(name: str, raw: Any) -> Any:
    if name in ("request_timeout", "fetch_timeout"):
        value = float(raw)
        if value <= 0:
            raise ValueError(f"{name} must be positive, got {raw!r}")
        return value
    return str(raw)


def get_settings(overrides: Optional[dict[str, Any]] = None) -> Settings:
    """
    Build Settings. Later sources win: defaults, config file,
    HN_BEST_* environment variables, explicit overrides.
    """
    settings = Settings()
    sources: list[dict[str, Any]] = [load_config()]

    env: dict[str, Any] = {}
    for name in Settings.__dataclass_fields__:
        env_value = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
        if env_value:
            env[name] = env_value
    sources.append(env)
    sources.append(overrides or {})

    for source in sources:
        values = {
            name: _coerce(name, raw)
            for name, raw in source.items()
            if name in Settings.__dataclass_fields__ and raw is not None
        }
        if values:
            settings = replace(settings, **values)

    return replace(settings, base_url=settings.base_url.rstrip("/"))
