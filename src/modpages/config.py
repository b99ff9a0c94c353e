from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

LOGGER = logging.getLogger(__name__)

DEFAULT_MIMETYPE = "text/html"


class Settings(BaseModel):
    root: str
    refresh_interval: float = Field(default=3600.0, gt=0)
    template: Optional[str] = None
    stylesheet_url: str = ""
    mimetype: str = DEFAULT_MIMETYPE
    host: str = "127.0.0.1"
    port: int = Field(default=8080, ge=0, le=65535)
    logs_dir: Optional[Path] = None
    log_level: str = "INFO"

    model_config = {
        "frozen": True,
    }

    @field_validator("root")
    @classmethod
    def _strip_root(cls, value: str) -> str:
        value = value.strip().strip(".")
        if not value:
            raise ValueError("root namespace must not be empty")
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()


def read_template(path: str | Path) -> Optional[str]:
    """Return the template text at ``path``, or None if it cannot be read."""
    try:
        return Path(path).expanduser().read_text(encoding="utf-8")
    except OSError as exc:
        LOGGER.warning("Ignoring unreadable template %s: %s", path, exc)
        return None


def _pick(cli_args: dict[str, Any], key: str, env_key: str, default: Any = None) -> Any:
    value = cli_args.get(key)
    if value is not None:
        return value
    env_value = os.getenv(env_key)
    if env_value is None or env_value.strip() == "":
        return default
    return env_value


def load_settings(cli_args: dict[str, Any] | None = None) -> Settings:
    load_dotenv(find_dotenv(usecwd=True))
    cli_args = cli_args or {}

    template_path = _pick(cli_args, "template", "MODPAGES_TEMPLATE")
    logs_dir = _pick(cli_args, "logs_dir", "LOGS_DIR")

    data: dict[str, Any] = {
        "root": _pick(cli_args, "root", "MODPAGES_ROOT", ""),
        "refresh_interval": _pick(cli_args, "refresh_interval", "MODPAGES_REFRESH_SECONDS", 3600.0),
        "template": read_template(template_path) if template_path else None,
        "stylesheet_url": _pick(cli_args, "stylesheet_url", "MODPAGES_STYLESHEET_URL", ""),
        "mimetype": _pick(cli_args, "mimetype", "MODPAGES_MIMETYPE", DEFAULT_MIMETYPE),
        "host": _pick(cli_args, "host", "HOST", "127.0.0.1"),
        "port": _pick(cli_args, "port", "PORT", 8080),
        "logs_dir": Path(logs_dir).expanduser() if logs_dir else None,
        "log_level": _pick(cli_args, "log_level", "LOG_LEVEL", "INFO"),
    }

    try:
        return Settings(**data)
    except ValidationError as exc:
        raise RuntimeError(f"Invalid configuration: {exc}") from exc
