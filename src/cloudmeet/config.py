"""Configuration loading from YAML + environment variables."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from dotenv import load_dotenv

from .models import AccessRole


@dataclass
class GoogleConfig:
    client_id: str = ""
    client_secret: str = ""
    token_uri: str = "https://oauth2.googleapis.com/token"


@dataclass
class HttpConfig:
    timeout_seconds: float = 30.0


@dataclass
class DirectoryConfig:
    max_pages: int = 50
    min_access_role: str = AccessRole.FREE_BUSY_READER.value


@dataclass
class EventsConfig:
    default_calendar_id: str = "primary"
    conference_solution: str = "hangoutsMeet"


@dataclass
class DatabaseConfig:
    path: str = "cloudmeet.db"


@dataclass
class Config:
    google: GoogleConfig = field(default_factory=GoogleConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    directory: DirectoryConfig = field(default_factory=DirectoryConfig)
    events: EventsConfig = field(default_factory=EventsConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)


def _resolve_env_vars(value: str) -> str:
    """Replace ${VAR} with environment variable values."""
    def replacer(match):
        var_name = match.group(1)
        return os.environ.get(var_name, match.group(0))
    return re.sub(r"\$\{(\w+)\}", replacer, value)


def _resolve_dict(d: dict) -> dict:
    """Recursively resolve env vars in a dict."""
    resolved = {}
    for k, v in d.items():
        if isinstance(v, str):
            resolved[k] = _resolve_env_vars(v)
        elif isinstance(v, dict):
            resolved[k] = _resolve_dict(v)
        elif isinstance(v, list):
            resolved[k] = [_resolve_env_vars(i) if isinstance(i, str) else i for i in v]
        else:
            resolved[k] = v
    return resolved


def load_config(config_path: str | Path, env_path: str | Path | None = None) -> Config:
    """Load config from YAML file with env var resolution."""
    config_path = Path(config_path).resolve()
    config_dir = config_path.parent

    if env_path:
        load_dotenv(env_path)
    else:
        # Look for .env next to config file first, then CWD
        env_beside_config = config_dir / ".env"
        if env_beside_config.exists():
            load_dotenv(env_beside_config)
        else:
            load_dotenv()

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _resolve_dict(raw)

    google_data = raw.get("google", {})
    google = GoogleConfig(
        client_id=google_data.get("client_id", ""),
        client_secret=google_data.get("client_secret", ""),
        token_uri=google_data.get("token_uri", "https://oauth2.googleapis.com/token"),
    )

    http_data = raw.get("http", {})
    http = HttpConfig(timeout_seconds=float(http_data.get("timeout_seconds", 30.0)))
    if http.timeout_seconds <= 0:
        raise ValueError(f"http.timeout_seconds must be positive, got {http.timeout_seconds}")

    dir_data = raw.get("directory", {})
    directory = DirectoryConfig(
        max_pages=int(dir_data.get("max_pages", 50)),
        min_access_role=dir_data.get("min_access_role", AccessRole.FREE_BUSY_READER.value),
    )
    if directory.max_pages < 1:
        raise ValueError(f"directory.max_pages must be at least 1, got {directory.max_pages}")
    valid_roles = [r.value for r in AccessRole]
    if directory.min_access_role not in valid_roles:
        raise ValueError(
            f"directory.min_access_role '{directory.min_access_role}' "
            f"must be one of: {', '.join(valid_roles)}"
        )

    events_data = raw.get("events", {})
    events = EventsConfig(
        default_calendar_id=events_data.get("default_calendar_id", "primary"),
        conference_solution=events_data.get("conference_solution", "hangoutsMeet"),
    )

    db_data = raw.get("database", {})
    database = DatabaseConfig(
        path=os.environ.get("DATABASE_PATH") or db_data.get("path", "cloudmeet.db"),
    )

    return Config(
        google=google,
        http=http,
        directory=directory,
        events=events,
        database=database,
    )
