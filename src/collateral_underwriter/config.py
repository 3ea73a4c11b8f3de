"""Configuration management for the Collateral Underwriter."""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_POLICY_PATH = Path(__file__).parent / "policies" / "default_policy.yaml"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Policy ─────────────────────────────────────────────────────────────────
    policy_path: Path = Field(
        default=DEFAULT_POLICY_PATH,
        description="YAML risk policy document",
    )
    market_regime: str = Field(
        default="neutral",
        description="Market condition regime applied when a request names none",
    )

    # ── Simulation ─────────────────────────────────────────────────────────────
    simulation_seed: Optional[int] = Field(
        default=None,
        description="Seed for the dry-run outcome generator (None = OS entropy)",
    )

    # ── Logging ────────────────────────────────────────────────────────────────
    log_level: str = Field(default="INFO", description="Root log level")


settings = Settings()
