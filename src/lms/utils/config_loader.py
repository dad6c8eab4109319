from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional

import yaml


def load_config(path: Optional[str]) -> Dict[str, Any]:
    if not path:
        return {}
    config_path = Path(path)
    if not config_path.exists():
        return {}
    with config_path.open('r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        return {}
    return data


def get_config_value(config: Dict[str, Any], keys: Iterable[str], default: Any = None) -> Any:
    cur: Any = config
    for key in keys:
        if not isinstance(cur, dict) or key not in cur:
            return default
        cur = cur[key]
    return cur


def resolve_setting(
    env_name: str,
    config: Dict[str, Any],
    keys: Iterable[str],
    default: Any,
    cast: Optional[Callable[[Any], Any]] = None,
) -> Any:
    """Environment variable first, then the YAML value, then the default."""
    raw = os.getenv(env_name)
    if raw is None or raw == "":
        raw = get_config_value(config, keys, default=None)
    if raw is None:
        return default
    return cast(raw) if cast else raw


def as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}
