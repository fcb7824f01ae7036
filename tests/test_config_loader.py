"""Configuration loader tests."""
from __future__ import annotations

from pathlib import Path

import pytest

from icectl.config import AppConfig, ConfigError, load_config


def test_load_config_defaults_when_file_missing(tmp_path: Path) -> None:
    """Defaults apply when no config file is present."""
    config = load_config(config_file=tmp_path / "missing.yml", env={})

    assert isinstance(config, AppConfig)
    assert config.host == "http://127.0.0.1:8000"
    assert config.user == "admin"
    assert config.password == "hackme"
    assert config.no_color is False
    assert config.timeout == 10.0
    assert config.logs_dir == Path("~/.local/state/icectl").expanduser()


def test_load_config_reads_yaml_file(tmp_path: Path) -> None:
    """Values are loaded from the YAML config file."""
    cfg = tmp_path / "config.yml"
    cfg.write_text(
        "host: radio.example:8000\n"
        "user: super_admin\n"
        "password: s3cret\n"
        "no_color: true\n"
        "timeout: 2.5\n"
        f"logs_dir: {tmp_path / 'logs'}\n"
    )

    config = load_config(config_file=cfg, env={})

    assert config.config_file == cfg
    assert config.host == "radio.example:8000"
    assert config.user == "super_admin"
    assert config.password == "s3cret"
    assert config.no_color is True
    assert config.timeout == 2.5
    assert config.logs_dir == tmp_path / "logs"


def test_env_overrides_take_precedence(tmp_path: Path) -> None:
    """Environment variables override defaults and file settings."""
    cfg = tmp_path / "config.yml"
    cfg.write_text("host: http://from-file:8000\ntimeout: 3\n")
    env = {
        "ICECTL_HOST": "http://from-env:8000",
        "ICECTL_TIMEOUT": "7",
        "ICECTL_NO_COLOR": "yes",
        "ICECTL_PASSWORD": "0123",
    }

    config = load_config(config_file=cfg, env=env)

    assert config.host == "http://from-env:8000"
    assert config.timeout == 7.0
    assert config.no_color is True
    assert config.password == "0123"


def test_overrides_beat_environment(tmp_path: Path) -> None:
    """Explicit overrides win, and ``None`` overrides are ignored."""
    env = {"ICECTL_USER": "env-user", "ICECTL_HOST": "http://from-env:8000"}

    config = load_config(
        config_file=tmp_path / "missing.yml",
        env=env,
        overrides={"user": "cli-user", "host": None},
    )

    assert config.user == "cli-user"
    assert config.host == "http://from-env:8000"


def test_env_can_select_config_file(tmp_path: Path) -> None:
    """Environment variable selects an alternate config file."""
    cfg = tmp_path / "override.yml"
    cfg.write_text("user: from-override\n")

    config = load_config(env={"ICECTL_CONFIG_FILE": str(cfg)})

    assert config.config_file == cfg
    assert config.user == "from-override"


def test_invalid_config_file_raises(tmp_path: Path) -> None:
    """A YAML document that is not a mapping raises ConfigError."""
    cfg = tmp_path / "bad.yml"
    cfg.write_text("- not-a-mapping\n")

    with pytest.raises(ConfigError):
        load_config(config_file=cfg, env={})


def test_unknown_top_level_key_raises(tmp_path: Path) -> None:
    """Unexpected top-level keys trigger ConfigError."""
    cfg = tmp_path / "config.yml"
    cfg.write_text("unknown: value\n")

    with pytest.raises(ConfigError, match="Unknown configuration keys"):
        load_config(config_file=cfg, env={})


@pytest.mark.parametrize("timeout", ["0", "-1", "soon"])
def test_invalid_timeout_raises(tmp_path: Path, timeout: str) -> None:
    """Timeouts must be positive numbers."""
    with pytest.raises(ConfigError, match="timeout"):
        load_config(config_file=tmp_path / "missing.yml", env={"ICECTL_TIMEOUT": timeout})


def test_empty_host_raises(tmp_path: Path) -> None:
    """An empty host cannot be used to reach the server."""
    with pytest.raises(ConfigError, match="host"):
        load_config(config_file=tmp_path / "missing.yml", env={}, overrides={"host": " "})


def test_non_boolean_no_color_raises(tmp_path: Path) -> None:
    """``no_color`` only accepts booleans."""
    cfg = tmp_path / "config.yml"
    cfg.write_text("no_color: sometimes\n")

    with pytest.raises(ConfigError, match="no_color"):
        load_config(config_file=cfg, env={})


def test_to_dict_masks_password(tmp_path: Path) -> None:
    """The serialised configuration never exposes the password."""
    config = load_config(config_file=tmp_path / "missing.yml", env={})

    data = config.to_dict()

    assert data["password"] == "********"
    assert data["host"] == "http://127.0.0.1:8000"
    assert "hackme" not in str(data)


@pytest.mark.parametrize(
    ("line", "key"),
    [
        ("password: 0123\n", "password"),
        ("password: yes\n", "password"),
        ("user: 1234\n", "user"),
        ("host: 8000\n", "host"),
    ],
)
def test_non_string_credentials_in_file_raise(tmp_path: Path, line: str, key: str) -> None:
    """YAML-typed credentials are rejected instead of being silently converted."""
    cfg = tmp_path / "config.yml"
    cfg.write_text(line)

    with pytest.raises(ConfigError, match=f"{key} must be a string; quote it"):
        load_config(config_file=cfg, env={})


def test_quoted_password_in_file_is_kept_verbatim(tmp_path: Path) -> None:
    """Quoted values keep their leading zeros."""
    cfg = tmp_path / "config.yml"
    cfg.write_text('password: "0123"\n')

    assert load_config(config_file=cfg, env={}).password == "0123"
