"""TOML configuration with ${VAR} / ${VAR:-default} environment substitution.

Substituted values are always strings, so numeric settings are read
through get_int_value / get_float_value, which treat an empty string
(an unset variable with an empty default) as "not configured".
"""

import os
import re
from pathlib import Path
from typing import Any

import toml

CONFIG_ENV_VAR = "CLAUSERAG_CONFIG"
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


def resolve_path(path: str | Path, config_path: Path) -> Path:
    """Resolve a path relative to the config file's parent directory."""
    path = Path(path)
    if path.is_absolute():
        return path
    return (config_path.parent / path).resolve()


def find_config_path(explicit_path: Path | None = None) -> Path:
    """Locate config.toml.

    Order: the explicit path, $CLAUSERAG_CONFIG, the working directory,
    then the project root.
    """
    if explicit_path:
        return explicit_path
    if os.environ.get(CONFIG_ENV_VAR):
        return Path(os.environ[CONFIG_ENV_VAR])
    for path in (Path("config.toml"), PROJECT_ROOT / "config.toml"):
        if path.exists():
            return path
    raise FileNotFoundError(
        f"config.toml not found (set {CONFIG_ENV_VAR} or pass a path)"
    )


def load_config(config_path: Path = Path("config.toml")) -> dict[str, Any]:
    config = toml.load(config_path)
    return _substitute(config)


def _substitute(value: Any) -> Any:
    if isinstance(value, str):
        return _ENV_PATTERN.sub(
            lambda m: os.environ.get(m.group(1), m.group(2) or ""), value
        )
    if isinstance(value, dict):
        return {k: _substitute(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute(item) for item in value]
    return value


def get_config_value(config: dict, key_path: str, default: Any = None) -> Any:
    """Get a nested config value using dot notation.

    Args:
        config: Configuration dictionary.
        key_path: Dot-separated path (e.g., "index.dimension").
        default: Returned when any segment is missing.
    """
    value: Any = config
    for key in key_path.split("."):
        if not isinstance(value, dict) or key not in value:
            return default
        value = value[key]
    return value


def get_int_value(config: dict, key_path: str, default: int | None) -> int | None:
    value = get_config_value(config, key_path)
    if value is None or value == "":
        return default
    return int(value)


def get_float_value(config: dict, key_path: str, default: float) -> float:
    value = get_config_value(config, key_path)
    if value is None or value == "":
        return default
    return float(value)


def get_storage_dir(config: dict, config_path: Path) -> Path:
    """Directory holding the persisted similarity index."""
    return resolve_path(
        get_config_value(config, "storage.directory", "storage"), config_path
    )
