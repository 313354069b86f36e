"""Runtime settings read from the environment (and a ``.env`` file)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

ENV_PREFIX = "DRIVESHARE_"


def _env(name: str, default: str) -> str:
    return os.getenv(ENV_PREFIX + name, default)


@dataclass
class Settings:
    """Application settings.

    Construct directly in tests; use ``Settings.from_env()`` in deployments.
    """

    database_url: str = "sqlite+aiosqlite:///./driveshare.db"
    jwt_secret: str = "dev-secret-change-me"
    jwt_algorithm: str = "HS256"
    public_base_url: str = "http://localhost:3000"
    trash_retention_days: int = 30
    sweep_interval_seconds: int = 3600
    log_level: str = "INFO"
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    echo_sql: bool = False
    host: str = "127.0.0.1"
    port: int = 8000

    @classmethod
    def from_env(cls, *, dotenv: bool = True) -> Settings:
        """Build settings from ``DRIVESHARE_*`` environment variables."""
        if dotenv:
            load_dotenv()
        defaults = cls()
        origins = _env("CORS_ORIGINS", ",".join(defaults.cors_origins))
        return cls(
            database_url=_env("DATABASE_URL", defaults.database_url),
            jwt_secret=_env("JWT_SECRET", defaults.jwt_secret),
            jwt_algorithm=_env("JWT_ALGORITHM", defaults.jwt_algorithm),
            public_base_url=_env("PUBLIC_BASE_URL", defaults.public_base_url),
            trash_retention_days=int(
                _env("TRASH_RETENTION_DAYS", str(defaults.trash_retention_days))
            ),
            sweep_interval_seconds=int(
                _env("SWEEP_INTERVAL_SECONDS", str(defaults.sweep_interval_seconds))
            ),
            log_level=_env("LOG_LEVEL", defaults.log_level).upper(),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            echo_sql=_env("ECHO_SQL", "false").lower() == "true",
            host=_env("HOST", defaults.host),
            port=int(_env("PORT", str(defaults.port))),
        )
