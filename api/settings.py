"""Application settings read from the environment (and a local .env)."""

import os
from typing import Dict, List, Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_CORS_ORIGINS = ["http://localhost:5173", "http://localhost:8081"]


class AppSettings(BaseModel):
    database_url: Optional[str] = None
    storage: Literal["postgres", "memory"] = "memory"
    apply_schema: bool = False
    cors_origins: List[str] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    log_level: str = "INFO"
    log_dir: Optional[str] = None
    google_api_key: Optional[str] = None
    courses_file: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "AppSettings":
        """Build settings from GOLF_* variables, DATABASE_URL and GOOGLE_API_KEY.

        Storage defaults to postgres when DATABASE_URL is set, memory otherwise.
        """
        if environ is None:
            load_dotenv()
            environ = dict(os.environ)

        database_url = environ.get("DATABASE_URL") or None
        storage = environ.get("GOLF_STORAGE") or ("postgres" if database_url else "memory")
        origins = environ.get("GOLF_CORS_ORIGINS")
        return cls(
            database_url=database_url,
            storage=storage.strip().lower(),
            apply_schema=environ.get("GOLF_APPLY_SCHEMA", "").lower() in ("1", "true", "yes"),
            cors_origins=(
                [o.strip() for o in origins.split(",") if o.strip()]
                if origins else list(DEFAULT_CORS_ORIGINS)
            ),
            log_level=(environ.get("GOLF_LOG_LEVEL") or "INFO").upper(),
            log_dir=environ.get("GOLF_LOG_DIR") or None,
            google_api_key=environ.get("GOOGLE_API_KEY") or None,
            courses_file=environ.get("GOLF_COURSES_FILE") or None,
        )
