# backend/slotbook/config.py

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # project root


class Settings(BaseSettings):
    database_url: str = "sqlite:///./slots.db"
    redis_url: str = "redis://localhost:6379/0"

    # "sql" keeps overrides in the time_slots table, "redis" in per-date hashes
    slot_store: Literal["sql", "redis"] = "sql"

    # JSON weekday → hours, e.g. {"tue": [9, 10, 11, 13, 14], "6": [10, 11]}
    slot_template: str | None = None

    # Longest window GET /slots/calendar covers, in days after start_date
    calendar_horizon_days: int = 90

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # relative sqlite path → absolute, anchored at the project root
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            return f"sqlite:///{absolute_path}"
        return url


settings = Settings()
