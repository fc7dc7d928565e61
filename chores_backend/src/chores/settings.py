from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'sqlite'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/chores.db'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - ENABLE_BASIC_AUTH: 'true' to verify passwords against BASIC_AUTH_USERS (default: false).
      When false, any Basic username is accepted as the requester without a password check.
    - BASIC_AUTH_USERS: comma-separated 'name:password' pairs
    - SWEEP_ENABLED: run the periodic due-date sweep (default: true)
    - SWEEP_INTERVAL_SECONDS: seconds between sweep ticks (default: 3600)
    - LOG_LEVEL: root log level (default: INFO)
    - LOG_DIR: when set, also write a rotating log file there
    """

    persistence_backend: str = "memory"
    sqlite_db_path: str = "./data/chores.db"
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])
    enable_basic_auth: bool = False
    basic_auth_users: Dict[str, str] = field(default_factory=dict)
    sweep_enabled: bool = True
    sweep_interval_seconds: float = 3600.0
    log_level: str = "INFO"
    log_dir: Optional[str] = None


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_bool(value: str, default: bool = False) -> bool:
    v = value.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_float(value: str, default: float) -> float:
    try:
        parsed = float(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


def _parse_users(users_value: str) -> Dict[str, str]:
    """Parse 'alice:secret,bob:hunter2' into a username -> password map."""
    users: Dict[str, str] = {}
    for pair in users_value.split(","):
        name, sep, password = pair.strip().partition(":")
        if sep and name.strip():
            users[name.strip()] = password
    return users


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "sqlite"}:
        # Fallback to memory if unsupported
        backend = "memory"

    sqlite_path = _get_env("SQLITE_DB_PATH", "./data/chores.db").strip()
    origins = _parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*"))

    enable_basic_auth = _parse_bool(_get_env("ENABLE_BASIC_AUTH", "false"), False)
    users = _parse_users(os.getenv("BASIC_AUTH_USERS", "")) if enable_basic_auth else {}

    log_dir = os.getenv("LOG_DIR") or None

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=sqlite_path,
        cors_allow_origins=origins,
        enable_basic_auth=enable_basic_auth,
        basic_auth_users=users,
        sweep_enabled=_parse_bool(_get_env("SWEEP_ENABLED", "true"), True),
        sweep_interval_seconds=_parse_float(_get_env("SWEEP_INTERVAL_SECONDS", "3600"), 3600.0),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
        log_dir=log_dir,
    )
