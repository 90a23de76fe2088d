from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, cast

import yaml
from dotenv import load_dotenv

from .retry import RetryConfig

URL_ENV = "YOUTRACK_URL"
TOKEN_ENV = "YOUTRACK_TOKEN"
DEFAULT_DOTENV_LOCATIONS = (".env", ".env.local")


class ConfigError(RuntimeError):
    pass


@dataclass
class BulkConfig:
    youtrack_url: str | None
    youtrack_token: str | None
    timeout: float = 30.0
    verify_links: bool = True
    critical_path_limit: int = 20
    retry_attempts: int = field(default_factory=lambda: RetryConfig().attempts)
    retry_base_sleep: float = field(default_factory=lambda: RetryConfig().base_sleep)
    # Logging configuration
    logging_json_enabled: bool = False
    logging_level: str = "INFO"
    source_file: Path | None = None

    def validate(self) -> BulkConfig:
        missing = [
            name
            for name, value in (("youtrack.url", self.youtrack_url), ("youtrack.token", self.youtrack_token))
            if not value or str(value).startswith("$")
        ]
        if missing:
            raise ConfigError(f"Missing required configuration: {', '.join(missing)}")
        return self

    @property
    def retry(self) -> RetryConfig:
        return RetryConfig(attempts=self.retry_attempts, base_sleep=self.retry_base_sleep)


def _resolve_env_var(value: Any) -> Any:
    """Resolve environment variable if value starts with $."""
    if isinstance(value, str) and value.startswith("$"):
        return os.getenv(value[1:], value)  # Fallback to original if not found
    return value


def load_environment(dotenv_path: str | None = None) -> Path | None:
    """Load the first .env file found; returns its path."""
    candidates = [dotenv_path] if dotenv_path else list(DEFAULT_DOTENV_LOCATIONS)
    for location in candidates:
        env_file = Path(location)
        if env_file.exists():
            load_dotenv(str(env_file))
            return env_file
    return None


def load_config(path: str | Path) -> BulkConfig:
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Configuration file not found: {p}")
    try:
        raw = cast(dict[str, Any], yaml.safe_load(p.read_text()) or {})
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {p}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"Configuration root must be a mapping: {p}")
    yt = cast(dict[str, Any], raw.get("youtrack", {}) or {})
    bulk = cast(dict[str, Any], raw.get("bulk", {}) or {})
    critical = cast(dict[str, Any], raw.get("critical_path", {}) or {})
    retry = cast(dict[str, Any], raw.get("retry", {}) or {})
    retry_defaults = RetryConfig()
    logging_config = cast(dict[str, Any], raw.get("logging", {}) or {})
    env = cast(dict[str, Any], raw.get("environment", {}) or {})

    if env.get("load_dotenv", True):
        load_environment(env.get("dotenv_path"))

    return BulkConfig(
        youtrack_url=_resolve_env_var(yt.get("url", f"${URL_ENV}")),
        youtrack_token=_resolve_env_var(yt.get("token", f"${TOKEN_ENV}")),
        timeout=float(yt.get("timeout", 30)),
        verify_links=bool(bulk.get("verify_links", True)),
        critical_path_limit=int(critical.get("limit", 20)),
        retry_attempts=int(retry.get("attempts", retry_defaults.attempts)),
        retry_base_sleep=float(retry.get("base_sleep", retry_defaults.base_sleep)),
        logging_json_enabled=bool(logging_config.get("json_enabled", False)),
        logging_level=logging_config.get("level", "INFO"),
        source_file=p,
    )


def config_from_env(load_dotenv_file: bool = True) -> BulkConfig:
    if load_dotenv_file:
        load_environment()
    return BulkConfig(
        youtrack_url=os.getenv(URL_ENV),
        youtrack_token=os.getenv(TOKEN_ENV),
    )


__all__ = ["BulkConfig", "ConfigError", "config_from_env", "load_config", "load_environment"]
