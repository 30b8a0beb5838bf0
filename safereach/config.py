"""
SafeReach — Centralized configuration.

Loads all settings from .env and validates required keys.
Only the batch entry point reads the singleton; the engine modules receive
their parameters explicitly.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (one level up from safereach/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)

_POLICIES = ("retain", "purge")


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Storage
    DATABASE_PATH: str

    # Operational calendar — every "today" is computed in this zone
    TIMEZONE: str = "Asia/Shanghai"

    # What happens to a person whose leave ended yesterday: "retain" | "purge"
    LEAVE_CONCLUSION_POLICY: str = "retain"

    # Batch lease
    LOCK_PATH: str = "reminder-cron.lock"
    LOCK_TTL_SECONDS: int = 3600

    # Fallback thresholds for users without a reminder_settings row
    DEFAULT_URGENT_THRESHOLD: int = 10
    DEFAULT_SUGGEST_THRESHOLD: int = 7

    # Write one handled "system" reminder per successful run
    RECORD_RUN_MARKER: bool = True

    LOG_LEVEL: str = "INFO"

    @field_validator("TIMEZONE")
    @classmethod
    def check_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown TIMEZONE: {v!r}") from exc
        return v

    @field_validator("LEAVE_CONCLUSION_POLICY", mode="before")
    @classmethod
    def parse_policy(cls, v: str) -> str:
        policy = str(v).strip().lower()
        if policy not in _POLICIES:
            raise ValueError(f"LEAVE_CONCLUSION_POLICY must be one of {_POLICIES}")
        return policy

    @field_validator(
        "LOCK_TTL_SECONDS",
        "DEFAULT_URGENT_THRESHOLD",
        "DEFAULT_SUGGEST_THRESHOLD",
        mode="before",
    )
    @classmethod
    def parse_int(cls, v: str | int) -> int:
        return int(v)

    @field_validator("RECORD_RUN_MARKER", mode="before")
    @classmethod
    def parse_flag(cls, v: str | bool) -> bool:
        if isinstance(v, bool):
            return v
        return str(v).strip().lower() in ("1", "true", "yes", "on")

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def parse_level(cls, v: str) -> str:
        return str(v).strip().upper() or "INFO"


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    database_path = os.getenv("DATABASE_PATH", "")

    if not database_path:
        print("ERROR: DATABASE_PATH is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    return Settings(
        DATABASE_PATH=database_path,
        TIMEZONE=os.getenv("TIMEZONE", "Asia/Shanghai"),
        LEAVE_CONCLUSION_POLICY=os.getenv("LEAVE_CONCLUSION_POLICY", "retain"),
        LOCK_PATH=os.getenv("LOCK_PATH", "reminder-cron.lock"),
        LOCK_TTL_SECONDS=os.getenv("LOCK_TTL_SECONDS", "3600"),
        DEFAULT_URGENT_THRESHOLD=os.getenv("DEFAULT_URGENT_THRESHOLD", "10"),
        DEFAULT_SUGGEST_THRESHOLD=os.getenv("DEFAULT_SUGGEST_THRESHOLD", "7"),
        RECORD_RUN_MARKER=os.getenv("RECORD_RUN_MARKER", "true"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
    )


# Singleton — imported by the entry point as:
#   from safereach.config import settings
settings = _load_settings()
