"""Runtime settings, read from ``INVRES_*`` environment variables or ``.env``."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve data directory relative to the project root.
# When installed in editable mode the project root is the repo root.
_DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"


class Settings(BaseSettings):
    data_dir: Path = Field(default=_DEFAULT_DATA_DIR)
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False)

    # Optimistic retries per stock key before giving up with LedgerUnavailable
    cas_max_attempts: int = Field(default=25, ge=1)

    default_warehouse: str = Field(default="WH-001")

    # Minimum applied to stock records created on first movement
    low_stock_threshold: int = Field(default=0, ge=0)

    model_config = SettingsConfigDict(
        env_prefix="INVRES_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )
