"""Configuration loader for icectl.

Values are read from several sources, later ones winning:

1. Built-in defaults.
2. ``~/.config/icectl/config.yml`` (or an override path).
3. Environment variables prefixed with ``ICECTL_``.
4. Explicit overrides supplied programmatically (CLI flags).

Example::

    export ICECTL_HOST=http://radio.example:8000
    export ICECTL_TIMEOUT=5

Values are coerced via PyYAML's ``safe_load`` so that booleans and numbers are
parsed naturally. The resulting configuration is exposed as an immutable
``dataclass``.
"""
from __future__ import annotations

import os
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from pathlib import Path

import yaml

ENV_PREFIX = "ICECTL_"
CONFIG_ENV_VAR = f"{ENV_PREFIX}CONFIG_FILE"
RESERVED_ENV_KEYS = {CONFIG_ENV_VAR}
PASSWORD_MASK = "********"


class ConfigError(RuntimeError):
    """Raised when configuration parsing fails."""


@dataclass(frozen=True)
class AppConfig:
    """Resolved configuration values for icectl."""

    config_file: Path
    host: str
    user: str
    password: str
    no_color: bool
    timeout: float
    logs_dir: Path

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-serialisable representation with the password masked."""
        return {
            "config_file": str(self.config_file),
            "host": self.host,
            "user": self.user,
            "password": PASSWORD_MASK if self.password else "",
            "no_color": self.no_color,
            "timeout": self.timeout,
            "logs_dir": str(self.logs_dir),
        }


DEFAULTS: dict[str, object] = {
    "config_file": "~/.config/icectl/config.yml",
    "host": "http://127.0.0.1:8000",
    "user": "admin",
    "password": "hackme",
    "no_color": False,
    "timeout": 10.0,
    "logs_dir": "~/.local/state/icectl",
}

ALLOWED_TOP_LEVEL_KEYS = set(DEFAULTS.keys())


def load_config(
    config_file: str | os.PathLike[str] | None = None,
    *,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, object] | None = None,
) -> AppConfig:
    """Load and merge configuration sources into an :class:`AppConfig`."""
    merged: dict[str, object] = dict(DEFAULTS)
    resolved_env = dict(os.environ if env is None else env)

    config_default = _expect_str(merged["config_file"], "config_file")
    config_path = _determine_config_path(config_default, config_file, resolved_env)

    file_values = _load_yaml_file(config_path)
    if file_values:
        _merge(merged, file_values)

    env_values = _build_env_overrides(resolved_env)
    if env_values:
        _merge(merged, env_values)

    if overrides:
        _merge(merged, {key: value for key, value in overrides.items() if value is not None})

    merged["config_file"] = str(config_path)

    _validate_structure(merged)

    return _build_app_config(merged)


def _determine_config_path(
    default_path: str,
    cli_override: str | os.PathLike[str] | None,
    env: Mapping[str, str],
) -> Path:
    if cli_override:
        return Path(cli_override).expanduser()
    if CONFIG_ENV_VAR in env:
        return Path(env[CONFIG_ENV_VAR]).expanduser()
    return Path(default_path).expanduser()


def _load_yaml_file(path: Path) -> dict[str, object]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:  # pragma: no cover - PyYAML owns detailed error
        raise ConfigError(f"Failed to parse config file {path}: {exc}") from exc
    if not isinstance(data, Mapping):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level.")
    return _as_dict(data, f"file:{path}")


def _validate_structure(raw: Mapping[str, object]) -> None:
    unknown_keys = set(raw.keys()) - ALLOWED_TOP_LEVEL_KEYS
    if unknown_keys:
        joined = ", ".join(sorted(unknown_keys))
        raise ConfigError(f"Unknown configuration keys: {joined}.")

    for key in ("host", "user"):
        value = raw.get(key)
        if not isinstance(value, str):
            raise ConfigError(
                f"{key} must be a string; quote it in the config file. Got {value!r}."
            )
        if not value.strip():
            raise ConfigError(f"{key} must be a non-empty string.")

    password = raw.get("password")
    if password is not None and not isinstance(password, str):
        raise ConfigError("password must be a string; quote it in the config file.")

    no_color = raw.get("no_color")
    if not isinstance(no_color, bool):
        raise ConfigError(f"no_color must be a boolean. Got {no_color!r}.")

    _expect_positive_float(raw.get("timeout"), "timeout", default=10.0)


def _build_app_config(raw: Mapping[str, object]) -> AppConfig:
    password = raw.get("password")
    return AppConfig(
        config_file=_to_path(raw["config_file"]),
        host=_expect_str(raw["host"], "host").strip(),
        user=_expect_str(raw["user"], "user").strip(),
        password="" if password is None else _expect_str(password, "password"),
        no_color=bool(raw["no_color"]),
        timeout=_expect_positive_float(raw.get("timeout"), "timeout", default=10.0),
        logs_dir=_to_path(raw["logs_dir"]),
    )


def _build_env_overrides(env: Mapping[str, str]) -> dict[str, object]:
    overrides: dict[str, object] = {}
    for key, value in env.items():
        if key in RESERVED_ENV_KEYS:
            continue
        if not key.startswith(ENV_PREFIX):
            continue
        suffix = key[len(ENV_PREFIX) :].lower()
        if not suffix:
            continue
        if suffix in {"host", "user", "password"}:
            # Keep credentials verbatim; "0123" or "yes" are valid passwords.
            overrides[suffix] = value
            continue
        overrides[suffix] = _coerce_value(value)
    return overrides


def _merge(target: MutableMapping[str, object], overrides: Mapping[str, object]) -> None:
    for key, value in overrides.items():
        target[key] = value


def _coerce_value(raw: str) -> object:
    raw = raw.strip()
    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError:  # pragma: no cover - treat as string if parsing fails
        return raw
    return parsed


def _to_path(value: object) -> Path:
    if value is None:
        raise ConfigError("Expected a filesystem path, received None.")
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise ConfigError(f"Cannot convert value {value!r} to Path.")


def _expect_str(value: object, key: str) -> str:
    if isinstance(value, str):
        return value
    raise ConfigError(f"Expected {key} to resolve to a string. Got {value!r}.")


def _expect_positive_float(
    value: object | None,
    label: str,
    *,
    default: float,
) -> float:
    if value is None:
        return float(default)
    if isinstance(value, bool):
        raise ConfigError(f"Expected {label} to be a number. Got boolean {value!r}.")
    if isinstance(value, (int, float)):
        numeric = float(value)
    elif isinstance(value, str):
        try:
            numeric = float(value)
        except ValueError as exc:
            raise ConfigError(f"Invalid number for {label}: {value!r}.") from exc
    else:
        raise ConfigError(
            f"Expected {label} to be numeric. Got {type(value).__name__}."
        )
    if numeric <= 0:
        raise ConfigError(f"{label} must be greater than zero. Got {numeric}.")
    return numeric


def _as_dict(value: object | None, label: str) -> dict[str, object]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"Expected {label} to be a mapping. Got {type(value).__name__}.")
    result: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            raise ConfigError(f"Mapping {label} must use string keys. Got {key!r}.")
        result[key] = item
    return result


__all__ = [
    "AppConfig",
    "ConfigError",
    "load_config",
]
