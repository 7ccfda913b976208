"""Configuration loading for the user administration console."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

import yaml


DEFAULT_TIMEOUT = 10.0
DEFAULT_SESSION_TTL_MINUTES = 480
DEFAULT_MAX_SESSIONS = 1000

_FALSE_VALUES = {"0", "false", "no", "off"}
_TRUE_VALUES = {"1", "true", "yes", "on"}


def _parse_flag(value: object, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return default


def _parse_verify_setting(value: object, base_path: Path | None = None) -> Optional[Union[str, bool]]:
    if value is None or isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in {"", "default"}:
        return None
    if lowered in _FALSE_VALUES:
        return False
    if lowered in _TRUE_VALUES:
        return True
    path = Path(str(value)).expanduser()
    if not path.is_absolute() and base_path is not None:
        path = base_path / path
    return str(path.resolve(strict=False))


@dataclass(frozen=True)
class Settings:
    """Connection and web settings for the console."""

    api_base_url: str
    api_token: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    verify: Optional[Union[str, bool]] = None
    secure_cookies: bool = True
    session_ttl_minutes: int = DEFAULT_SESSION_TTL_MINUTES
    max_sessions: int = DEFAULT_MAX_SESSIONS

    @staticmethod
    def from_dict(data: Dict[str, object], base_path: Path | None = None) -> "Settings":
        """Create :class:`Settings` from the raw contents of a configuration file."""
        api_section = data.get("users_api") or {}
        if not isinstance(api_section, dict):
            raise ValueError("The 'users_api' configuration section must be a mapping")
        if not api_section.get("base_url"):
            raise ValueError("Missing required configuration field: users_api.base_url")

        token = api_section.get("token")
        return Settings(
            api_base_url=str(api_section["base_url"]).strip(),
            api_token=str(token) if token else None,
            timeout=float(api_section.get("timeout", DEFAULT_TIMEOUT)),
            verify=_parse_verify_setting(api_section.get("verify"), base_path),
            secure_cookies=_parse_flag(data.get("secure_cookies"), True),
            session_ttl_minutes=int(data.get("session_ttl_minutes", DEFAULT_SESSION_TTL_MINUTES)),
            max_sessions=int(data.get("max_sessions", DEFAULT_MAX_SESSIONS)),
        )

    def with_environment(self, environ: Mapping[str, str]) -> "Settings":
        """Return a copy with ``USERADMIN_*`` environment overrides applied."""
        updates: Dict[str, object] = {}
        if environ.get("USERADMIN_API_URL"):
            updates["api_base_url"] = environ["USERADMIN_API_URL"].strip()
        if environ.get("USERADMIN_API_TOKEN"):
            updates["api_token"] = environ["USERADMIN_API_TOKEN"].strip()
        if environ.get("USERADMIN_API_TIMEOUT"):
            try:
                updates["timeout"] = float(environ["USERADMIN_API_TIMEOUT"])
            except ValueError as exc:
                raise ValueError("USERADMIN_API_TIMEOUT must be a number of seconds") from exc
        if environ.get("USERADMIN_API_VERIFY") is not None:
            updates["verify"] = _parse_verify_setting(environ["USERADMIN_API_VERIFY"])
        if environ.get("USERADMIN_SESSION_SECURE") is not None:
            updates["secure_cookies"] = _parse_flag(environ["USERADMIN_SESSION_SECURE"], True)
        return replace(self, **updates) if updates else self


def load_settings_file(config_path: Path) -> Settings:
    """Load settings from a YAML file."""
    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}
    if not isinstance(raw, dict):
        raise ValueError("Configuration file must contain a mapping")
    return Settings.from_dict(raw, base_path=config_path.parent)


def resolve_config_path(env_value: Optional[str]) -> Optional[Path]:
    """Resolve the configuration file path, or ``None`` when none is configured."""
    if not env_value:
        return None
    return Path(env_value).expanduser().resolve(strict=False)


def load_settings(
    config_path: Optional[Path] = None,
    *,
    api_base_url: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Combine the configuration file, the environment and explicit overrides."""
    env = os.environ if environ is None else environ
    if config_path is None:
        config_path = resolve_config_path(env.get("USERADMIN_CONFIG"))

    if config_path is not None:
        settings = load_settings_file(config_path)
    else:
        settings = Settings(api_base_url="")

    settings = settings.with_environment(env)
    if api_base_url:
        settings = replace(settings, api_base_url=api_base_url.strip())

    if not settings.api_base_url:
        raise ValueError(
            "The users API URL must be configured via USERADMIN_API_URL, --api-url or a"
            " configuration file"
        )
    if settings.timeout <= 0:
        raise ValueError("The users API timeout must be positive")
    if settings.max_sessions < 1:
        raise ValueError("max_sessions must be at least 1")
    return settings


__all__ = ["Settings", "load_settings", "load_settings_file", "resolve_config_path"]
