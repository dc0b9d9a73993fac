"""
filingdesk.settings
===================

Configuration settings for FilingDesk.

Storage locations are plain module constants read from ``FILINGDESK_*``
environment variables.  Behavioural knobs (timezone, display fallbacks,
warning thresholds, logging) live on the pydantic :class:`Settings` model so
they can also come from a ``.env`` file.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Base directories
# ---------------------------------------------------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent

# Database settings
# ---------------------------------------------------------------------------
DB_FILE = os.environ.get("FILINGDESK_DB_FILE", BASE_DIR / "filingdesk.db")
DB_URL = os.environ.get("FILINGDESK_DB_URL", f"sqlite:///{DB_FILE}")
DB_ECHO = os.environ.get("FILINGDESK_DB_ECHO", "False").lower() == "true"


# ---------------------------------------------------------------------------
# Pydantic settings model
# ---------------------------------------------------------------------------
class Settings(BaseSettings):
    """Runtime settings, loaded from environment variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="FILINGDESK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    timezone: str = Field(
        default="Europe/London",
        description="Timezone used to decide what 'today' is",
    )
    date_fallback: str = Field(
        default="Not set", description="Text shown when a date cannot be resolved"
    )
    table_fallback: str = Field(
        default="—", description="Compact placeholder used in table cells"
    )
    ct_change_warning_days: int = Field(
        default=30,
        description="CT due shift (days) that blocks an auto-update while the period is pending",
    )
    upcoming_window_days: int = Field(
        default=30, description="Default look-ahead for upcoming deadlines"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging level for the CLI"
    )


# Initialize settings
settings = Settings()
