"""Configuration for the shotty client and server.

Client settings live in a JSON file (``~/.shotty.json`` unless ``SHOTTY_CONFIG``
points elsewhere) and are loaded once per invocation, then passed explicitly to
whatever needs them. Server settings come from the environment; in development
a ``.env`` file is loaded first.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from shotty.errors import ConfigInvalid

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "~/.shotty.json"
DEFAULT_SERVER_URL = "http://localhost:8888"


def get_config_path() -> Path:
    """Path of the client config file."""
    return Path(os.environ.get("SHOTTY_CONFIG", DEFAULT_CONFIG_FILE)).expanduser()


def _expand(value: Any) -> Any:
    if isinstance(value, str | Path):
        return Path(value).expanduser().absolute()
    return value


class Settings(BaseModel):
    """Client configuration."""

    token: str = Field(..., min_length=1)
    dropbox_root: Path = Field(default_factory=lambda: Path("~/Dropbox").expanduser())
    screenshot_directory: Path | None = None
    desktop_directory: Path = Field(default_factory=lambda: Path("~/Desktop").expanduser())
    server_url: str = DEFAULT_SERVER_URL
    max_retries: int = Field(default=10, ge=0)
    retry_delay: float = Field(default=2.0, ge=0)
    http_timeout: float = Field(default=30.0, gt=0)

    @field_validator("dropbox_root", "screenshot_directory", "desktop_directory", mode="before")
    @classmethod
    def _expand_paths(cls, value: Any) -> Any:
        return _expand(value)

    @model_validator(mode="after")
    def _check_screenshot_directory(self) -> Settings:
        if self.screenshot_directory is None:
            self.screenshot_directory = self.dropbox_root / "Shotty"
        if not self.screenshot_directory.is_relative_to(self.dropbox_root):
            raise ValueError(
                f"screenshot_directory {self.screenshot_directory} "
                f"must be inside dropbox_root {self.dropbox_root}"
            )
        return self

    @classmethod
    def load(cls, path: Path | None = None) -> Settings:
        """Load and validate settings. Raises ConfigInvalid on any problem."""
        path = path or get_config_path()
        if not path.exists():
            raise ConfigInvalid(
                f"Config file {path} does not exist. Run `shotty authorize` to get a "
                "token, then save it as {\"token\": \"...\"} in that file."
            )
        try:
            data = json.loads(path.read_text())
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigInvalid(f"Could not read config file {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigInvalid(f"Config file {path} must contain a JSON object")
        try:
            settings = cls.model_validate(data)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
                for err in exc.errors()
            )
            raise ConfigInvalid(f"Invalid config file {path}: {problems}") from exc
        logger.debug("Loaded settings from %s", path)
        return settings

    def public_dict(self) -> dict[str, Any]:
        """Settings as JSON-friendly data with the token masked."""
        data = self.model_dump(mode="json")
        data["token"] = f"{self.token[:4]}…" if len(self.token) > 8 else "…"
        return data


class ServerSettings(BaseModel):
    """OAuth server configuration."""

    app_key: str = Field(..., min_length=1)
    app_secret: str = Field(..., min_length=1)
    callback_url: str = Field(..., min_length=1)
    environment: str = "development"
    session_ttl: int = Field(default=900, gt=0)
    http_timeout: float = Field(default=15.0, gt=0)

    @classmethod
    def from_env(cls) -> ServerSettings:
        environment = os.environ.get("SHOTTY_ENV", "development")
        if environment == "development":
            load_dotenv()

        missing = [
            name
            for name in ("DROPBOX_APP_KEY", "DROPBOX_APP_SECRET", "SHOTTY_CALLBACK_URL")
            if not os.environ.get(name)
        ]
        if missing:
            raise ConfigInvalid(f"Missing environment variables: {', '.join(missing)}")

        try:
            return cls(
                app_key=os.environ["DROPBOX_APP_KEY"],
                app_secret=os.environ["DROPBOX_APP_SECRET"],
                callback_url=os.environ["SHOTTY_CALLBACK_URL"],
                environment=environment,
                session_ttl=os.environ.get("SHOTTY_SESSION_TTL", 900),
                http_timeout=os.environ.get("SHOTTY_HTTP_TIMEOUT", 15.0),
            )
        except ValidationError as exc:
            raise ConfigInvalid(f"Invalid server settings: {exc}") from exc
