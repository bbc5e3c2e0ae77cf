"""
QuestCal — Centralized configuration.

Loads all settings from .env and validates required keys.
Core components take their tunables as constructor arguments and fall back
to this module only when none are given.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from questcal/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Quest REST API
    API_BASE_URL: str
    API_SESSION_COOKIE: str = ""
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # Backend: "http" | "memory"
    CALENDAR_BACKEND: str = "http"

    # Calendar day boundaries are computed in this zone
    TIMEZONE: str = "UTC"

    # Day/week grid geometry
    PIXELS_PER_HOUR: float = 60.0
    SNAP_MINUTES: int = 5
    MIN_EVENT_MINUTES: int = 5
    MIN_BLOCK_HEIGHT_PX: float = 20.0
    RESIZE_HANDLE_PX: float = 8.0
    DRAG_THRESHOLD_PX: float = 2.0

    # Auto-scroll while dragging near the container edges
    AUTO_SCROLL_THRESHOLD_PX: float = 50.0
    AUTO_SCROLL_STEP_PX: float = 10.0
    AUTO_SCROLL_INTERVAL_MS: int = 16  # ~60fps

    # Rubber-band selection
    SELECTION_MIN_PX: float = 10.0

    @field_validator("API_BASE_URL", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return str(v).rstrip("/")

    @field_validator("CALENDAR_BACKEND", mode="before")
    @classmethod
    def normalize_backend(cls, v: str) -> str:
        return str(v).strip().lower() or "http"

    @field_validator("SNAP_MINUTES", "MIN_EVENT_MINUTES", mode="after")
    @classmethod
    def positive_minutes(cls, v: int) -> int:
        if v < 1:
            raise ValueError("minute settings must be >= 1")
        return v


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    base_url = os.getenv("API_BASE_URL", "")

    if not base_url or base_url.startswith("your-"):
        print("ERROR: API_BASE_URL is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    return Settings(
        API_BASE_URL=base_url,
        API_SESSION_COOKIE=os.getenv("API_SESSION_COOKIE", ""),
        HTTP_TIMEOUT_SECONDS=os.getenv("HTTP_TIMEOUT_SECONDS", "10"),
        CALENDAR_BACKEND=os.getenv("CALENDAR_BACKEND", "http"),
        TIMEZONE=os.getenv("TIMEZONE", "UTC"),
        PIXELS_PER_HOUR=os.getenv("PIXELS_PER_HOUR", "60"),
        SNAP_MINUTES=os.getenv("SNAP_MINUTES", "5"),
        MIN_EVENT_MINUTES=os.getenv("MIN_EVENT_MINUTES", "5"),
        MIN_BLOCK_HEIGHT_PX=os.getenv("MIN_BLOCK_HEIGHT_PX", "20"),
        RESIZE_HANDLE_PX=os.getenv("RESIZE_HANDLE_PX", "8"),
        DRAG_THRESHOLD_PX=os.getenv("DRAG_THRESHOLD_PX", "2"),
        AUTO_SCROLL_THRESHOLD_PX=os.getenv("AUTO_SCROLL_THRESHOLD_PX", "50"),
        AUTO_SCROLL_STEP_PX=os.getenv("AUTO_SCROLL_STEP_PX", "10"),
        AUTO_SCROLL_INTERVAL_MS=os.getenv("AUTO_SCROLL_INTERVAL_MS", "16"),
        SELECTION_MIN_PX=os.getenv("SELECTION_MIN_PX", "10"),
    )


# Singleton, imported by all other modules as:
#   from questcal.config import settings
settings = _load_settings()
