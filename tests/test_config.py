from __future__ import annotations

from pathlib import Path

import pytest

from useradmin.config import Settings, load_settings, load_settings_file, resolve_config_path


def _write_config(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "useradmin.yaml"
    path.write_text(content, encoding="utf-8")
    return path


def test_load_settings_file_reads_users_api_section(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path,
        """
users_api:
  base_url: https://users.example.com/api
  token: abc123
  timeout: 5
  verify: certs/ca.pem
secure_cookies: false
session_ttl_minutes: 30
max_sessions: 50
""",
    )

    settings = load_settings_file(path)

    assert settings.api_base_url == "https://users.example.com/api"
    assert settings.api_token == "abc123"
    assert settings.timeout == 5.0
    assert settings.verify == str((tmp_path / "certs" / "ca.pem").resolve())
    assert settings.secure_cookies is False
    assert settings.session_ttl_minutes == 30
    assert settings.max_sessions == 50


def test_load_settings_file_requires_base_url(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "users_api:\n  token: abc\n")

    with pytest.raises(ValueError, match="base_url"):
        load_settings_file(path)


def test_environment_overrides_file(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "users_api:\n  base_url: https://file.example.com\n")
    environ = {
        "USERADMIN_API_URL": "https://env.example.com",
        "USERADMIN_API_TIMEOUT": "2.5",
        "USERADMIN_API_VERIFY": "false",
        "USERADMIN_SESSION_SECURE": "no",
    }

    settings = load_settings(path, environ=environ)

    assert settings.api_base_url == "https://env.example.com"
    assert settings.timeout == 2.5
    assert settings.verify is False
    assert settings.secure_cookies is False


def test_explicit_url_wins_over_environment() -> None:
    settings = load_settings(
        api_base_url="https://cli.example.com",
        environ={"USERADMIN_API_URL": "https://env.example.com"},
    )

    assert settings.api_base_url == "https://cli.example.com"
    assert settings.secure_cookies is True


def test_config_path_taken_from_environment(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "users_api:\n  base_url: https://file.example.com\n")

    settings = load_settings(environ={"USERADMIN_CONFIG": str(path)})

    assert settings.api_base_url == "https://file.example.com"


def test_missing_url_is_rejected() -> None:
    with pytest.raises(ValueError, match="USERADMIN_API_URL"):
        load_settings(environ={})


def test_invalid_timeout_is_rejected() -> None:
    with pytest.raises(ValueError):
        load_settings(environ={"USERADMIN_API_URL": "https://x", "USERADMIN_API_TIMEOUT": "soon"})
    with pytest.raises(ValueError):
        load_settings(environ={"USERADMIN_API_URL": "https://x", "USERADMIN_API_TIMEOUT": "0"})


def test_resolve_config_path() -> None:
    assert resolve_config_path(None) is None
    assert resolve_config_path("") is None
    assert resolve_config_path("/etc/useradmin.yaml") == Path("/etc/useradmin.yaml")


def test_settings_defaults() -> None:
    settings = Settings(api_base_url="https://x")

    assert settings.timeout == 10.0
    assert settings.verify is None
    assert settings.api_token is None
    assert settings.max_sessions == 1000


def test_non_positive_session_cap_is_rejected(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "users_api:\n  base_url: https://x\nmax_sessions: 0\n")

    with pytest.raises(ValueError, match="max_sessions"):
        load_settings(path, environ={})
