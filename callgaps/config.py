"""
Centralised configuration loaded from environment / .env file.
Uses pydantic-settings for validation and type coercion.
"""

from __future__ import annotations

from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from callgaps.models import OfficeHours


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CALLGAPS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Audit window ────────────────────────────────────────────
    office_hours_start: str = Field(default="08:00", description="HH:MM wall-clock")
    office_hours_end: str = Field(default="18:00", description="HH:MM wall-clock")
    gap_threshold_minutes: int = Field(default=15, ge=0, le=24 * 60)

    # ── Paths ───────────────────────────────────────────────────
    database_path: Path = Field(default=Path("data/call_gaps.db"))
    output_dir: Path = Field(default=Path("data/output"))
    log_dir: Path = Field(default=Path("data/logs"))

    def office_hours(self) -> OfficeHours:
        """Validated office-hours window built from the configured strings."""
        return OfficeHours(start=self.office_hours_start, end=self.office_hours_end)

    def ensure_dirs(self) -> None:
        """Create required directories if they don't exist."""
        for d in [
            self.output_dir,
            self.log_dir,
            self.database_path.parent,
        ]:
            d.mkdir(parents=True, exist_ok=True)


def get_settings() -> Settings:
    """Factory – builds settings from the environment on every call."""
    return Settings()  # type: ignore[call-arg]
