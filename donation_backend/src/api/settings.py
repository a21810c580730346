from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - SESSION_BACKEND: 'memory' (default) or 'sqlite'
    - SESSION_DB_PATH: path to the sqlite session file. Default './data/session.db'
    - SIMULATED_LATENCY_SECONDS: artificial delay applied before each store mutation (default 0)
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: logging level name (default INFO)
    """

    session_backend: str
    session_db_path: str
    simulated_latency_seconds: float
    cors_allow_origins: List[str]
    log_level: str


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_float(value: str, default: float = 0.0) -> float:
    try:
        parsed = float(value.strip())
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


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


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("SESSION_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "sqlite"}:
        # Fallback to memory if unsupported
        backend = "memory"

    db_path = _get_env("SESSION_DB_PATH", "./data/session.db").strip()
    latency = _parse_float(_get_env("SIMULATED_LATENCY_SECONDS", "0"), 0.0)
    origins = _parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*"))

    log_level = _get_env("LOG_LEVEL", "INFO").strip().upper()
    if log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        log_level = "INFO"

    return Settings(
        session_backend=backend,
        session_db_path=db_path,
        simulated_latency_seconds=latency,
        cors_allow_origins=origins,
        log_level=log_level,
    )
