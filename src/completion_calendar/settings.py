from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import tzinfo
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'sqlite'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/calendar.db'
    - CALENDAR_TIMEZONE: IANA zone used to decide which day an entry belongs to;
      unset means the system's local time
    - FIRST_WEEKDAY: first column of the month grid, 0=Monday .. 6=Sunday (default 6)
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: logging level name (default INFO)
    """

    persistence_backend: str
    sqlite_db_path: str
    timezone_name: Optional[str]
    first_weekday: int
    cors_allow_origins: List[str]
    log_level: str

    @property
    def tz(self) -> Optional[tzinfo]:
        return ZoneInfo(self.timezone_name) if self.timezone_name else None


def _get_env(name: str, default: str) -> str:
    """Environment value with surrounding blanks removed; blank counts as unset."""
    value = (os.getenv(name) or "").strip()
    return value or default


def _parse_weekday(value: str, default: int = 6) -> int:
    try:
        n = int(value.strip())
    except ValueError:
        return default
    return n if 0 <= n <= 6 else default


def _parse_timezone(value: str) -> Optional[str]:
    name = value.strip()
    if not name:
        return None
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"CALENDAR_TIMEZONE is not a known time zone: {name!r}") from e
    return name


def _parse_origins(raw: str) -> List[str]:
    # "*" anywhere in the list, or no origins at all, means any origin
    origins = [part.strip() for part in raw.split(",")]
    origins = [o for o in origins if o]
    if not origins or "*" in origins:
        return ["*"]
    return origins


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").lower()
    if backend not in {"memory", "sqlite"}:
        backend = "memory"

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=_get_env("SQLITE_DB_PATH", "./data/calendar.db"),
        timezone_name=_parse_timezone(_get_env("CALENDAR_TIMEZONE", "")),
        first_weekday=_parse_weekday(_get_env("FIRST_WEEKDAY", "6")),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        log_level=_get_env("LOG_LEVEL", "INFO").upper(),
    )
